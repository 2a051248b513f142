"""콘텐츠 타입 판별과 저장용 파일명 생성.

둘 다 상태가 없는 순수 함수다 (파일명 생성은 시계와 난수만 읽는다).
"""

import os
import threading
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

DEFAULT_COMPRESSIBLE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/tiff",
        "image/bmp",
    }
)

MAX_STORED_NAME_LENGTH = 255
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def normalize_content_type(content_type: str | None) -> str:
    """'Image/PNG; charset=binary ' → 'image/png'. None이면 빈 문자열."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_compressible(
    content_type: str | None, allowed: Iterable[str] = DEFAULT_COMPRESSIBLE_TYPES
) -> bool:
    """압축 대상 형식인지 판별한다.

    허용 목록은 인코더가 실제로 처리하는 형식보다 넓다 (tiff, bmp 포함).
    여기서 통과해도 CompressionEngine에서 UnsupportedFormatError가 날 수 있다.
    """
    normalized = normalize_content_type(content_type)
    if not normalized:
        return False
    return normalized in {normalize_content_type(t) for t in allowed}


# 같은 초 안에서 이미 발급한 토큰. 초가 바뀌면 비운다.
_issued_lock = threading.Lock()
_issued_second = ""
_issued_tokens: set[str] = set()


def _draw_token(timestamp: str) -> str:
    global _issued_second
    with _issued_lock:
        if timestamp != _issued_second:
            _issued_second = timestamp
            _issued_tokens.clear()
        while True:
            token = uuid.uuid4().hex[:8]
            if token not in _issued_tokens:
                _issued_tokens.add(token)
                return token


def generate_unique_name(original_name: str, now: datetime | None = None) -> str:
    """'photo.png' → 'photo_20250804173513_1a2b3c4d.png'.

    - 경로가 섞여 들어오면 파일명 부분만 사용한다.
    - ".png"처럼 점으로 시작하는 이름은 base 없이 확장자만 있는 것으로 본다.
    - 결과가 255자를 넘으면 base 쪽을 잘라 맞춘다.
    """
    base, ext = os.path.splitext(os.path.basename(original_name or ""))
    if not ext and len(base) > 1 and base.startswith(".") and base.count(".") == 1:
        # ".png"처럼 확장자만 있는 이름
        base, ext = "", base
    timestamp = (now or datetime.now(UTC)).strftime(TIMESTAMP_FORMAT)
    token = _draw_token(timestamp)

    suffix = f"_{timestamp}_{token}{ext}"
    room = MAX_STORED_NAME_LENGTH - len(suffix)
    if room < 0:
        # 확장자 자체가 비정상적으로 긴 경우
        suffix = f"_{timestamp}_{token}"
        room = MAX_STORED_NAME_LENGTH - len(suffix)
    return f"{base[:room]}{suffix}"
