from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from scarf_orders.config import settings
from scarf_orders.database import get_session_factory
from scarf_orders.presentation.schemas import (
    CreateOrderRequest, SelectPostageRequest, OrderResponse, PostDeliveryOptionsResponse,
    PostDeliveryOptionResponse, OrderPriceResponse, ClientSecretResponse,
    FulfillmentMethodResponse, ErrorResponse
)
from scarf_orders.application.create_order import CreateOrderUseCase, CreateOrderDTO
from scarf_orders.application.select_postage import SelectPostageUseCase, SelectPostageDTO
from scarf_orders.application.get_order import GetOrderUseCase, ListOrdersUseCase
from scarf_orders.application.order_queries import (
    CalculatePostageUseCase, OrderPriceUseCase, PaymentClientSecretUseCase,
    OrderFulfillmentMethodUseCase
)
from scarf_orders.application.interfaces import ShippingRateGateway, PaymentGateway
from scarf_orders.domain.exceptions import (
    DomainException, InvalidQuantityError, InvalidPostageOptionError, NoAddressOnOrderError,
    InvalidOrderIdError, OrderNotFoundError, InvalidOrderStateError, ConcurrentModificationError,
    OrderDecodeError, ShippingRateUnavailableError, PaymentIntentCreationFailedError,
    PaymentServiceError
)
from scarf_orders.domain import pricing
from scarf_orders.infrastructure.unit_of_work import UnitOfWork
from scarf_orders.infrastructure.http_clients import AusPostShippingClient, StripePaymentsClient

router = APIRouter()

ERROR_STATUS = {
    InvalidQuantityError: status.HTTP_400_BAD_REQUEST,
    InvalidPostageOptionError: status.HTTP_400_BAD_REQUEST,
    NoAddressOnOrderError: status.HTTP_400_BAD_REQUEST,
    InvalidOrderIdError: status.HTTP_400_BAD_REQUEST,
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidOrderStateError: status.HTTP_409_CONFLICT,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    OrderDecodeError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ShippingRateUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    PaymentIntentCreationFailedError: status.HTTP_502_BAD_GATEWAY,
    PaymentServiceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _http_error(e: DomainException) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"type": e.code, "message": str(e)}
    )


# Внешние зависимости, подменяются в тестах
def get_unit_of_work() -> UnitOfWork:
    return UnitOfWork(get_session_factory())


def get_shipping_gateway() -> ShippingRateGateway:
    return AusPostShippingClient(settings.AUSPOST_BASE_URL, settings.AUSPOST_PAC_API, settings.HTTP_TIMEOUT)


def get_payment_gateway() -> PaymentGateway:
    return StripePaymentsClient(settings.STRIPE_BASE_URL, settings.STRIPE_SECRET_KEY, settings.HTTP_TIMEOUT)


# Фабрики для создания use cases
def get_create_order_use_case(
    uow=Depends(get_unit_of_work),
    shipping: ShippingRateGateway = Depends(get_shipping_gateway),
    payments: PaymentGateway = Depends(get_payment_gateway)
):
    return CreateOrderUseCase(uow, shipping, payments)


def get_select_postage_use_case(
    uow=Depends(get_unit_of_work),
    shipping: ShippingRateGateway = Depends(get_shipping_gateway),
    payments: PaymentGateway = Depends(get_payment_gateway)
):
    return SelectPostageUseCase(
        uow, shipping, payments,
        max_retries=settings.PAYMENT_UPDATE_RETRIES,
        retry_delay=settings.PAYMENT_UPDATE_RETRY_DELAY
    )


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(uow=Depends(get_unit_of_work)):
    """Все заказы"""
    try:
        orders = await ListOrdersUseCase(uow)()
    except DomainException as e:
        raise _http_error(e)
    return [OrderResponse.from_domain(order) for order in orders]


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать заказ: контакты, способ получения и, для доставки, адрес"""
    dto = CreateOrderDTO(
        name=request.name,
        email=request.email,
        quantity=request.quantity,
        fulfillment_method=request.delivery_method,
        address_apartment=request.address_apt,
        address_street=request.address_street,
        address_town=request.address_town,
        address_state=request.address_state,
        address_post_code=request.address_post_code
    )
    try:
        order = await use_case(dto)
    except DomainException as e:
        raise _http_error(e)
    return OrderResponse.from_domain(order)


@router.get("/orders/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def get_order(order_id: str, uow=Depends(get_unit_of_work)):
    """Получить заказ по ID"""
    try:
        order = await GetOrderUseCase(uow)(order_id)
    except DomainException as e:
        raise _http_error(e)
    return OrderResponse.from_domain(order)


@router.post("/orders/{order_id}/postage", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def select_postage(
    order_id: str,
    request: SelectPostageRequest,
    use_case: SelectPostageUseCase = Depends(get_select_postage_use_case)
):
    """Выбор варианта доставки. После этого заказ остается только оплатить"""
    try:
        order = await use_case(SelectPostageDTO(order_id=order_id, code=request.code))
    except DomainException as e:
        raise _http_error(e)
    return OrderResponse.from_domain(order)


@router.get(
    "/orders/{order_id}/postage-options",
    response_model=PostDeliveryOptionsResponse,
    responses=ERROR_RESPONSES
)
async def calculate_postage(
    order_id: str,
    uow=Depends(get_unit_of_work),
    shipping: ShippingRateGateway = Depends(get_shipping_gateway)
):
    """Варианты доставки для адреса и количества заказа"""
    try:
        options = await CalculatePostageUseCase(uow, shipping)(order_id)
    except DomainException as e:
        raise _http_error(e)
    return PostDeliveryOptionsResponse(
        options=[PostDeliveryOptionResponse(**option.model_dump()) for option in options]
    )


@router.get("/orders/{order_id}/price", response_model=OrderPriceResponse, responses=ERROR_RESPONSES)
async def order_price(
    order_id: str,
    uow=Depends(get_unit_of_work),
    payments: PaymentGateway = Depends(get_payment_gateway)
):
    """Сумма платежа из Stripe и стоимость шарфов без доставки"""
    try:
        price = await OrderPriceUseCase(uow, payments)(order_id)
    except DomainException as e:
        raise _http_error(e)
    return OrderPriceResponse(
        amount_cents=price.amount_cents,
        amount=pricing.cents_to_amount(price.amount_cents),
        currency=price.currency,
        subtotal_cents=price.subtotal_cents
    )


@router.get(
    "/orders/{order_id}/payment-client-secret",
    response_model=ClientSecretResponse,
    responses=ERROR_RESPONSES
)
async def payment_client_secret(
    order_id: str,
    uow=Depends(get_unit_of_work),
    payments: PaymentGateway = Depends(get_payment_gateway)
):
    try:
        client_secret = await PaymentClientSecretUseCase(uow, payments)(order_id)
    except DomainException as e:
        raise _http_error(e)
    return ClientSecretResponse(client_secret=client_secret)


@router.get(
    "/orders/{order_id}/fulfillment-method",
    response_model=FulfillmentMethodResponse,
    responses=ERROR_RESPONSES
)
async def order_fulfillment_method(order_id: str, uow=Depends(get_unit_of_work)):
    try:
        method = await OrderFulfillmentMethodUseCase(uow)(order_id)
    except DomainException as e:
        raise _http_error(e)
    return FulfillmentMethodResponse(method=method)
