"""Service-layer errors with stable codes for API clients."""


class TradeError(ValueError):
    """A request rejected before any side effect.

    `code` is the machine-readable reason returned to clients, `status_code`
    is the HTTP status the routers answer with.
    """

    def __init__(self, code: str, message: str = "", status_code: int = 400):
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        self.status_code = status_code

    def as_detail(self) -> dict:
        return {"error": self.code, "message": self.message}


def missing_fields(names: list[str]) -> TradeError:
    return TradeError("missing_fields", f"Missing required fields: {', '.join(names)}")


def unsupported_symbol(symbol: str) -> TradeError:
    return TradeError("unsupported_symbol", f"Unsupported coin symbol: {symbol}")


def user_not_found(user_id: str) -> TradeError:
    return TradeError("user_not_found", f"User {user_id} not found", status_code=404)


def insufficient_balance(coin: str) -> TradeError:
    return TradeError("insufficient_balance", f"Insufficient {coin} balance")


def invalid_mode(mode) -> TradeError:
    return TradeError("invalid_mode", f"Invalid trade mode: {mode!r}")


def invalid_conversion(message: str) -> TradeError:
    return TradeError("invalid_conversion", message)


def trade_not_found(trade_id: str) -> TradeError:
    return TradeError("trade_not_found", f"Trade {trade_id} not found", status_code=404)


def invalid_number(field: str, value) -> TradeError:
    return TradeError("invalid_number", f"{field} must be a finite number, got {value!r}")


def invalid_status(status) -> TradeError:
    return TradeError("invalid_status", f"Invalid status: {status!r}")


def request_not_found(kind: str, request_id: str) -> TradeError:
    return TradeError(f"{kind}_not_found", f"{kind.capitalize()} {request_id} not found", status_code=404)


def request_finalized(kind: str, request_id: str) -> TradeError:
    return TradeError("request_finalized", f"{kind.capitalize()} {request_id} is already approved", status_code=409)
