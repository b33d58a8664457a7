import asyncio, json
from aio_pika import connect_robust, ExchangeType
from campus_events.clients.profile_client import ProfileServiceClient
from campus_events.core.config import settings
from campus_events.core.errors import StoreFailure
from campus_events.core.logging import logger
from campus_events.db.session import AsyncSessionLocal
from campus_events.events.publisher import EXCHANGE_NAME, publish_event
from campus_events.services.assignment_service import AssignmentJob, AssignmentService

QUEUE_NAME = "campus_events.assignments"


async def handle_message(body: bytes, session_factory=None, client_factory=ProfileServiceClient):
    data = json.loads(body.decode())
    typ = data.get("type")
    if typ != "assignment.requested":
        logger.warning(f"Ignoring message of unknown type {typ!r}")
        return None

    job = AssignmentJob.from_message(data)
    session_factory = session_factory or AsyncSessionLocal
    async with session_factory() as session:
        service = AssignmentService(session, client_factory(credentials=job.credentials))
        try:
            return await service.run(job)
        except StoreFailure as e:
            if job.attempt >= settings.ASSIGNMENT_MAX_ATTEMPTS:
                logger.error(f"Giving up on assignment job for event {job.event_id} after {job.attempt} attempts: {e.error}")
                return None
            logger.warning(f"Assignment job for event {job.event_id} failed (attempt {job.attempt}), requeueing: {e.error}")
            job.attempt += 1
            await publish_event("assignment.requested", job.to_message())
            return None


async def run_worker():
    max_retries = 10
    delay = 5  # seconds
    for attempt in range(1, max_retries + 1):
        try:
            connection = await connect_robust(settings.RABBITMQ_URL)
            logger.info("Successfully connected to RabbitMQ")
            break
        except Exception as e:
            logger.error(f"RabbitMQ connection failed (attempt {attempt}/{max_retries}): {e}")
            if attempt == max_retries:
                raise
            await asyncio.sleep(delay)
    channel = await connection.channel()
    exchange = await channel.declare_exchange(EXCHANGE_NAME, ExchangeType.TOPIC, durable=True)
    queue = await channel.declare_queue(QUEUE_NAME, durable=True)
    await queue.bind(exchange, routing_key="assignment.*")
    async with queue.iterator() as queue_iter:
        async for message in queue_iter:
            async with message.process():
                try:
                    await handle_message(message.body)
                except Exception as e:
                    logger.exception(f"Error handling message: {e}")


if __name__ == "__main__":
    asyncio.run(run_worker())
