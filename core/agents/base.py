"""Base agent class with retry logic."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from core.exceptions import RetryExhaustedError, StagePreconditionError

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")
T = TypeVar("T")

# Errors that will fail the same way on every attempt
NON_RETRYABLE: tuple[type[Exception], ...] = (StagePreconditionError,)


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    logger: logging.Logger,
    description: str,
) -> T:
    """Await ``operation`` up to ``max_retries + 1`` times.

    Args:
        operation: Zero-argument coroutine factory.
        max_retries: Maximum retry attempts (0 = no retries).
        logger: Logger used for attempt reporting.
        description: Short label for log and error messages.

    Returns:
        The first successful result.

    Raises:
        RetryExhaustedError: If every attempt fails.
    """
    last_error: Exception | None = None
    total_attempts = max_retries + 1

    for attempt in range(total_attempts):
        try:
            result = await operation()
            if attempt:
                logger.info("%s succeeded on attempt %d", description, attempt + 1)
            return result
        except NON_RETRYABLE:
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "%s attempt %d/%d failed: %s",
                description,
                attempt + 1,
                total_attempts,
                str(e),
            )

    raise RetryExhaustedError(
        f"All {total_attempts} attempts failed for {description}: {last_error}",
        attempts=total_attempts,
    ) from last_error


class BaseAgent(ABC, Generic[TInput, TOutput]):
    """Abstract base class for the text-generation agents.

    Provides common functionality including:
    - Structured logging
    - Retry logic with configurable attempts
    - Consistent input/output handling

    Subclasses must implement the `_execute` method with their specific logic.
    """

    def __init__(self, *, max_retries: int = 1):
        """Initialize the agent.

        Args:
            max_retries: Maximum number of retry attempts (0 = no retries).
        """
        self.max_retries = max_retries
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def _execute(self, input_data: TInput) -> TOutput:
        """Core execution logic - must be implemented by subclasses.

        Args:
            input_data: The input data for this agent.

        Returns:
            The processed output.

        Raises:
            Any exception that should trigger a retry.
        """
        ...

    async def run(self, input_data: TInput) -> TOutput:
        """Execute the agent with retry logic.

        Args:
            input_data: The input data to process.

        Returns:
            The processed output.

        Raises:
            RetryExhaustedError: If all retry attempts fail.
        """
        return await with_retries(
            lambda: self._execute(input_data),
            max_retries=self.max_retries,
            logger=self.logger,
            description=self.__class__.__name__,
        )
