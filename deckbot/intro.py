import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .messenger import Messenger
from .models import PostedMessage
from .transcript import Catalog


@dataclass(frozen=True)
class IntroStep:
    text: str
    delay: float = 0              # Pause after this step
    display_name: Optional[str] = None
    threaded: bool = True         # False = a new root message


def default_steps(catalog: Catalog, narrator_name: str, delay: float = 3) -> List[IntroStep]:
    return [
        IntroStep(text=catalog.get_string("intro.root"), delay=delay, threaded=False),
        IntroStep(text=catalog.get_string("intro.wonder"), delay=delay, display_name=narrator_name),
        IntroStep(text=catalog.get_string("intro.prompt"), delay=delay, display_name=narrator_name),
    ]


class IntroSequence:
    """
    Scripted opening, run by a single task.
    The first non-threaded step creates the session; later threaded steps reply under it.
    Cancelling mid-way leaves whatever was already posted. A rerun starts over.
    """
    def __init__(self, messenger: Messenger, steps: Sequence[IntroStep]):
        self.messenger = messenger
        self.steps = list(steps)
        self.task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    async def run(self) -> Optional[PostedMessage]:
        root: Optional[PostedMessage] = None
        for index, step in enumerate(self.steps):
            if step.threaded:
                if root is None:
                    raise ValueError(f"Intro step {index} is threaded but no root message was posted yet")
                await self.messenger.send(step.text, thread_ts=root.ts, display_name=step.display_name)
            else:
                root = await self.messenger.send(step.text, display_name=step.display_name)
                logging.info(f"Intro: Root message posted ({root.ts})")

            if step.delay:
                await asyncio.sleep(step.delay)
        return root

    def start(self) -> asyncio.Task:
        if self.running:
            logging.warning("Intro: Sequence already running, cancelling it first")
            self.task.cancel()
        self.task = asyncio.create_task(self.run())
        self.task.add_done_callback(self._log_result)
        return self.task

    def cancel(self):
        if self.running:
            logging.info("Intro: Cancelling sequence")
            self.task.cancel()

    @staticmethod
    def _log_result(task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error:
            logging.error(f"Error sending initial message: {error}")
