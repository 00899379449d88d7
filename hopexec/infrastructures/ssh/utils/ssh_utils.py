import asyncio
import functools
from concurrent.futures import Executor
from typing import Optional


async def run_in_executor(func, *args, executor: Optional[Executor] = None, **kwargs):
    loop = asyncio.get_running_loop()
    partial_func = functools.partial(func, *args, **kwargs)
    return await loop.run_in_executor(executor, partial_func)
