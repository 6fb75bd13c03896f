from dataclasses import dataclass


class UnauthorizedError(PermissionError):
    """Raised when the caller's identity does not satisfy a route gate."""


@dataclass(slots=True, frozen=True)
class Principal:
    username: str
    is_admin: bool = False

    def require_admin(self) -> None:
        if self.is_admin is not True:
            raise UnauthorizedError("admin required")

    def require_self_or_admin(self, username: str) -> None:
        if self.is_admin is True or self.username == username:
            return
        raise UnauthorizedError(f"not allowed to access user {username}")
