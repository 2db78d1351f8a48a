"""
Example: Running Faults Through the Pipeline

Shows the manager, a fault bus, post-processing handlers and event monitoring
"""

import asyncio
import logging

from aiofaults import (
    ApplicationErrorType,
    ApplicationException,
    CallbackHandler,
    ExceptionContext,
    HttpFault,
    UnifiedExceptionManager,
    configure_logging,
    context_from_headers,
)
from aiofaults.events import global_bus


class PrintingBus:
    """Stand-in for an external fault-reporting service"""

    async def publish(self, error, context):
        print(f"  bus <- {error.name} [{error.code}] tenant={context['tenant_id']}")


async def main():
    configure_logging(logging.WARNING)

    manager = UnifiedExceptionManager(fault_bus=PrintingBus())

    # Example 1: Handling faults of different shapes
    print("=" * 60)
    print("Example 1: Handling Faults")
    print("=" * 60)

    context = context_from_headers(
        {"X-Request-Id": "req-42", "X-Tenant-Id": "acme", "X-User-Id": "u-7"},
        ip_address="10.0.0.7",
    )

    faults = [
        TimeoutError("Connection timeout"),
        HttpFault(404, {"detail": "no such order"}),
        ApplicationException(
            "User 7 not found",
            error_type=ApplicationErrorType.RESOURCE_NOT_FOUND,
            error_code="USER_NOT_FOUND",
        ),
        {"message": "database write failed", "details": {"sql": "INSERT ...", "password": "x"}},
        ValueError("invalid email"),
        None,
    ]

    for fault in faults:
        result = await manager.handle(fault, context)
        if result.handled:
            print(f"  {result.results[-1].strategy}: {result.response['message']}")
        else:
            print(f"  no strategy for {fault!r}")

    print()

    # Example 2: Post-processing handlers
    print("=" * 60)
    print("Example 2: Handlers")
    print("=" * 60)

    async def page_on_call(exception):
        print(f"  paging on-call for {exception.code} ({exception.id})")

    manager.register_handler(CallbackHandler(
        "pager",
        page_on_call,
        priority=10,
        predicate=lambda exc: exc.should_notify(),
    ))

    await manager.handle(ConnectionRefusedError("ECONNREFUSED 10.0.0.3:443"), context)
    await manager.handle(ValueError("field is required"), context)

    print()

    # Example 3: Global event bus
    print("=" * 60)
    print("Example 3: Global Event Bus")
    print("=" * 60)

    @global_bus.on("strategy_succeeded")
    async def on_strategy(event):
        print(f"  [GLOBAL] {event.strategy_name} handled {event.exception_id}")

    @global_bus.on("exception_unhandled")
    async def on_unhandled(event):
        print(f"  [GLOBAL] unhandled {event.code}")

    await manager.handle("network unreachable", ExceptionContext(tenant_id="acme"))
    await manager.handle(ValueError("invalid date"), ExceptionContext(tenant_id="acme"))

    print()

    # Example 4: Statistics and health
    print("=" * 60)
    print("Example 4: Statistics")
    print("=" * 60)

    stats = manager.get_stats()
    print(f"  total: {stats['total_exceptions']}")
    print(f"  by category: {stats['by_category']}")
    print(f"  published: {stats['publish']['published']}")
    print(f"  healthy: {manager.get_health()['is_healthy']}")

    await manager.destroy()


if __name__ == "__main__":
    asyncio.run(main())
