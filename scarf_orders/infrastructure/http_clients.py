import httpx
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict

from scarf_orders.domain.models import PaymentIntent, PostDeliveryOption
from scarf_orders.domain.exceptions import ShippingGatewayError, PaymentGatewayError
from scarf_orders.application.interfaces import ShippingRateGateway, PaymentGateway

logger = logging.getLogger(__name__)

# Посылка отправляется из Сиднея в коробке фиксированного размера
FROM_POSTCODE = "2077"
PARCEL_LENGTH_CM = "22"
PARCEL_WIDTH_CM = "16"
PARCEL_HEIGHT_CM = "7.7"
SCARF_WEIGHT_KG = Decimal("0.1")


class AusPostShippingClient(ShippingRateGateway):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def quote(self, quantity: int, postcode: int) -> List[PostDeliveryOption]:
        params = {
            "from_postcode": FROM_POSTCODE,
            "to_postcode": str(postcode),
            "length": PARCEL_LENGTH_CM,
            "width": PARCEL_WIDTH_CM,
            "height": PARCEL_HEIGHT_CM,
            "weight": str(SCARF_WEIGHT_KG * quantity)
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self._base_url}/postage/parcel/domestic/service.json",
                    params=params,
                    headers={"AUTH-KEY": self._api_key},
                    timeout=self._timeout
                )
        except httpx.TimeoutException as e:
            logger.error(f"Australia Post timeout: {e}")
            raise ShippingGatewayError(f"Australia Post не ответил за {self._timeout} с")
        except httpx.RequestError as e:
            logger.error(f"Australia Post ошибка подключения: {e}")
            raise ShippingGatewayError(f"Australia Post не доступен: {str(e)}")

        if response.status_code != 200:
            raise ShippingGatewayError(f"Australia Post ошибка: {response.status_code}")

        try:
            services = response.json()["services"]["service"]
        except (ValueError, KeyError, TypeError):
            raise ShippingGatewayError("Australia Post вернул неожиданный ответ")

        # Единственная услуга приходит объектом, а не списком
        if isinstance(services, dict):
            services = [services]

        return [self._to_option(service) for service in services]

    @staticmethod
    def _to_option(service: dict) -> PostDeliveryOption:
        try:
            price = Decimal(str(service.get("price") or "0"))
            return PostDeliveryOption(name=service["name"], code=service["code"], price=price)
        except InvalidOperation:
            raise ShippingGatewayError(f"Некорректная цена услуги {service.get('code')}: {service.get('price')}")
        except (ValueError, KeyError, TypeError, AttributeError):
            raise ShippingGatewayError(f"Australia Post вернул неполную услугу: {service}")


class StripePaymentsClient(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        secret_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._base_url = base_url
        self._secret_key = secret_key
        self._timeout = timeout
        self._transport = transport

    async def create_intent(
        self, amount_cents: int, currency: str, description: str, metadata: Dict[str, str]
    ) -> PaymentIntent:
        data = {
            "amount": str(amount_cents),
            "currency": currency,
            "description": description
        }
        for key, value in metadata.items():
            data[f"metadata[{key}]"] = value
        return await self._request("POST", "/v1/payment_intents", data=data)

    async def update_amount(self, transaction_id: str, amount_cents: int) -> PaymentIntent:
        return await self._request(
            "POST", f"/v1/payment_intents/{transaction_id}", data={"amount": str(amount_cents)}
        )

    async def retrieve(self, transaction_id: str) -> PaymentIntent:
        return await self._request("GET", f"/v1/payment_intents/{transaction_id}")

    async def _request(self, method: str, path: str, data: Optional[dict] = None) -> PaymentIntent:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    data=data,
                    headers={"Authorization": f"Bearer {self._secret_key}"},
                    timeout=self._timeout
                )
        except httpx.TimeoutException as e:
            logger.error(f"Stripe timeout: {e}")
            raise PaymentGatewayError(f"Stripe не ответил за {self._timeout} с", transient=True)
        except httpx.RequestError as e:
            logger.error(f"Stripe ошибка подключения: {e}")
            raise PaymentGatewayError(f"Stripe не доступен: {str(e)}", transient=True)

        if response.status_code != 200:
            transient = response.status_code == 429 or response.status_code >= 500
            raise PaymentGatewayError(f"Stripe ошибка: {response.status_code}", transient=transient)

        try:
            body = response.json()
            return PaymentIntent(
                id=body["id"],
                amount_cents=body["amount"],
                currency=body["currency"],
                client_secret=body.get("client_secret")
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.error(f"Stripe вернул неожиданный ответ на {method} {path}")
            raise PaymentGatewayError("Stripe вернул неожиданный ответ", transient=True)
