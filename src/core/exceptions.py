"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"error_code": "...", "message": "..."} 형식의 JSON 응답을 생성한다.

압축 파이프라인(processor, service)은 이 예외들을 그대로 전파하고,
응답 변환은 HTTP 계층에서만 한다.
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


# --- 조회 실패 ---


class NotFoundError(AppException):
    status_code = 404
    error_code = "NOT_FOUND"
    message = "요청한 리소스를 찾을 수 없습니다"


class ImageNotFound(NotFoundError):
    error_code = "IMAGE_NOT_FOUND"
    message = "이미지를 찾을 수 없습니다"


class BlobNotFound(NotFoundError):
    error_code = "BLOB_NOT_FOUND"
    message = "이미지 파일을 찾을 수 없습니다"


# --- 처리 불가 ---


class UnsupportedFormatError(AppException):
    status_code = 422
    error_code = "UNSUPPORTED_FORMAT"
    message = "압축할 수 없는 이미지 형식입니다"


class DecodeError(AppException):
    status_code = 422
    error_code = "DECODE_ERROR"
    message = "이미지를 디코딩할 수 없습니다"


class InvalidQuality(AppException):
    status_code = 400
    error_code = "INVALID_QUALITY"
    message = "quality는 1~100 범위여야 합니다"


class EmptyUpload(AppException):
    status_code = 400
    error_code = "EMPTY_UPLOAD"
    message = "업로드할 파일을 선택하세요"


# --- 저장소 ---


class StoreError(AppException):
    status_code = 500
    error_code = "STORE_ERROR"
    message = "저장소 처리 중 오류가 발생했습니다"
