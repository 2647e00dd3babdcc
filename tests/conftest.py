import pytest

from scarf_orders.application.create_order import CreateOrderDTO, CreateOrderUseCase
from scarf_orders.domain.models import FulfillmentMethod

from tests.fakes import FakePaymentGateway, FakeShippingGateway, InMemoryUnitOfWork


@pytest.fixture()
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture()
def shipping():
    return FakeShippingGateway()


@pytest.fixture()
def payments():
    return FakePaymentGateway()


@pytest.fixture()
def pickup_dto():
    return CreateOrderDTO(
        name="Ann",
        email="a@x.com",
        quantity=2,
        fulfillment_method=FulfillmentMethod.PICKUP
    )


@pytest.fixture()
def post_dto():
    return CreateOrderDTO(
        name="Bob",
        email="b@x.com",
        quantity=3,
        fulfillment_method=FulfillmentMethod.POST,
        address_street="1 George St",
        address_town="Sydney",
        address_state="NSW",
        address_post_code=2000
    )


@pytest.fixture()
def create_order(uow, shipping, payments):
    return CreateOrderUseCase(uow, shipping, payments)
