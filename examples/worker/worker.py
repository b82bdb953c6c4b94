"""Long-running worker that flushes reports after every message."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass

from faultbridge import ReportingSettings, create_fault_listener
from faultbridge.integrations import consume, retry_up_to
from faultbridge.observability import bootstrap_logging


@dataclass(frozen=True)
class Message:
    body: str
    attempt: int = 1


def handle(message: Message) -> None:
    time.sleep(0.1)
    if random.random() < 0.3:
        raise RuntimeError(f"could not process {message.body}")


def main() -> None:
    bootstrap_logging(service="example-worker", log_format="text")
    reporting = create_fault_listener(ReportingSettings.from_env())
    messages = (Message(body=f"job-{index}") for index in range(20))
    stats = consume(reporting.dispatcher, messages, handle, will_retry=retry_up_to(3))
    print(f"handled={stats.handled} failed={stats.failed}")


if __name__ == "__main__":
    main()
