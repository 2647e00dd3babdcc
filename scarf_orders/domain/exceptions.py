class DomainException(Exception):
    code = "INTERNAL_ERROR"


class ConfigurationError(DomainException):
    code = "CONFIGURATION_ERROR"


class InvalidQuantityError(DomainException):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Количество должно быть больше 0, получено: {quantity}")


class InvalidPostageOptionError(DomainException):
    code = "INVALID_POSTAGE_OPTION"

    def __init__(self, code: str):
        self.postage_code = code
        super().__init__(f"Вариант доставки {code} недоступен для этого заказа")


class NoAddressOnOrderError(DomainException):
    code = "NO_ADDRESS"


class InvalidOrderIdError(DomainException):
    code = "INVALID_ID"


class OrderNotFoundError(DomainException):
    code = "NOT_FOUND"


class InvalidOrderStateError(DomainException):
    code = "INVALID_STATE"


class ConcurrentModificationError(DomainException):
    code = "CONCURRENT_MODIFICATION"


class OrderDecodeError(DomainException):
    code = "INTERNAL_DECODE_ERROR"


class ShippingRateUnavailableError(DomainException):
    code = "SHIPPING_RATE_UNAVAILABLE"


class PaymentIntentCreationFailedError(DomainException):
    code = "PAYMENT_INTENT_CREATION_FAILED"


class PaymentServiceError(DomainException):
    code = "PAYMENT_SERVICE_ERROR"


# Ошибки внешних шлюзов, переводятся в доменные в use cases
class ShippingGatewayError(Exception):
    pass


class PaymentGatewayError(Exception):
    def __init__(self, message: str, transient: bool = False):
        self.transient = transient
        super().__init__(message)
