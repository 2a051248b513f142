"""CPU-bound 작업을 이벤트 루프 밖에서 실행하는 러너.

압축(디코딩 + 리사이즈 + 인코딩)은 await 포인트가 없는 CPU 작업이라
async 핸들러에서 그대로 부르면 이벤트 루프가 멈추고, 그동안 다른 요청도 막힌다.

run_in_executor()로 전용 스레드풀에 위임하면
I/O 계층은 비동기로 남고, 실제 처리는 풀의 스레드에서 실행된다.
Pillow는 인코딩/디코딩 중 GIL을 놓기 때문에 스레드로도 병렬 효과가 있다.
"""

import asyncio
import functools
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")


def create_pool(workers: int = 4) -> ThreadPoolExecutor:
    """압축 전용 스레드풀. lifespan에서 한 번 만들고 종료 시 shutdown한다."""
    return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="compress")


async def run_in_pool(pool: ThreadPoolExecutor | None, func: Callable[..., T], *args) -> T:
    """func(*args)를 풀에서 실행하고 결과를 기다린다.

    pool이 None이면 이벤트 루프의 기본 executor를 쓴다.
    func에서 난 예외는 그대로 호출자에게 전파된다.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(pool, functools.partial(func, *args))
