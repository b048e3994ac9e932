import aio_pika

from .config import EXCHANGE_NAME, RABBIT_URL
from .log import logger


class Publisher:
    """
    Publishes domain events to the topic exchange for the notifier to consume.
    Disabled (no-op) when no broker URL is configured.
    """

    def __init__(self, url: str | None = RABBIT_URL):
        self.url = url
        self.enabled = bool(url)
        self._conn = None
        self._channel = None
        self._exchange = None

    async def start(self):
        if not self.enabled:
            return
        if self._conn and not self._conn.is_closed:
            return
        try:
            self._conn = await aio_pika.connect_robust(self.url)
            self._channel = await self._conn.channel()
            self._exchange = await self._channel.declare_exchange(
                EXCHANGE_NAME, aio_pika.ExchangeType.TOPIC, durable=True
            )
        except Exception as e:
            logger.warning(f"RabbitMQ connect failed: {e}")
            self._conn = None
            self._channel = None
            self._exchange = None
            raise

    async def publish(self, routing_key: str, body: str):
        if not self.enabled:
            return

        try:
            await self.start()
        except Exception:
            return

        try:
            msg = aio_pika.Message(
                body=body.encode("utf-8"),
                content_type="application/json",
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            )
            await self._exchange.publish(msg, routing_key=routing_key)
        except Exception as e:
            # booking is already committed at this point
            logger.error(f"RabbitMQ publish failed for {routing_key}: {e}")

    async def close(self):
        try:
            if self._conn and not self._conn.is_closed:
                await self._conn.close()
        finally:
            self._conn = None
            self._channel = None
            self._exchange = None
