import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import TypeAlias

Clock: TypeAlias = Callable[[], datetime]
LoopFactory: TypeAlias = Callable[[], asyncio.AbstractEventLoop]
