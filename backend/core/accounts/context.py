from contextvars import ContextVar, Token

_current_correlation_id: ContextVar[str] = ContextVar("current_correlation_id", default="-")


def get_correlation_id() -> str:
    return _current_correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token:
    return _current_correlation_id.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    _current_correlation_id.reset(token)
