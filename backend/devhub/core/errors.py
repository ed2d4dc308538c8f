from fastapi import HTTPException, status

from devhub.core.results import ErrorKind, ServiceResult, T

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorKind.NAME_TAKEN: status.HTTP_409_CONFLICT,
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.TEAM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVITATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_A_MEMBER: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_RECIPIENT: status.HTTP_403_FORBIDDEN,
    ErrorKind.ALREADY_MEMBER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_PENDING: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ALREADY_RESOLVED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CANNOT_REMOVE_OWNER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(result: ServiceResult[T]) -> T:
    """Return the result's value, or raise the HTTPException matching its error kind."""
    if result.ok:
        return result.value
    code = ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=code, detail=result.message)
