"""처리 시간 측정 유틸리티."""

import time
from contextlib import contextmanager

from loguru import logger


@contextmanager
def timer(label: str = ""):
    """컨텍스트 매니저: 블록 실행 시간을 측정한다.

    사용법:
        with timer("encode image/png") as t:
            ...
        t.elapsed  # 초 단위
    """
    t = _TimerResult()
    start = time.perf_counter()
    try:
        yield t
    finally:
        t.elapsed = time.perf_counter() - start
        if label:
            logger.debug(f"[{label}] {t.elapsed * 1000:.1f}ms")


class _TimerResult:
    elapsed: float = 0.0
