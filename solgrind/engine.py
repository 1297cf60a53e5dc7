"""
Grind-and-submit engine.

Repeatedly builds and signs a transfer, shows only its signature to a
caller-supplied predicate, and broadcasts the first candidate the
predicate accepts. A run broadcasts at most once, and only the
transaction built in the same iteration that was accepted.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .builder import AddressLike, AmountLike, SignedTransaction, TransactionBuilder, parse_address
from .config import GrindPolicy
from .exceptions import SolGrindError
from .gateway import LedgerGateway, rate_limited_log
from .identity import Identity

logger = logging.getLogger(__name__)

SignaturePredicate = Callable[[str], bool]


class GrindState(str, Enum):
    """States of a grind run."""
    BUILDING = "BUILDING"
    EVALUATING = "EVALUATING"
    SUBMITTING = "SUBMITTING"
    ACCEPTED = "ACCEPTED"
    EXHAUSTED = "EXHAUSTED"
    CANCELLED = "CANCELLED"
    FAILING = "FAILING"


@dataclass
class GrindResult:
    """
    Outcome of a grind run.

    Attributes:
        transaction: The accepted transaction, or the last one built
        signature: Signature returned by the broadcast, None if nothing was sent
        attempts: Number of candidates handed to the predicate
        transient_errors: Number of build failures that were retried
        state: Final state of the run
        last_error: Last transient error seen, if any
    """
    transaction: Optional[SignedTransaction]
    signature: Optional[str]
    attempts: int
    transient_errors: int = 0
    state: GrindState = GrindState.EXHAUSTED
    last_error: Optional[SolGrindError] = None

    @property
    def submitted(self) -> bool:
        return self.signature is not None


class GrindEngine:
    """
    Drives the build, evaluate, submit cycle.

    Args:
        builder: Transaction builder for candidates
        gateway: Gateway used for the single broadcast
        policy: Attempt budget and back-off settings
    """

    def __init__(
        self,
        builder: TransactionBuilder,
        gateway: LedgerGateway,
        policy: Optional[GrindPolicy] = None
    ):
        self.builder = builder
        self.gateway = gateway
        self.policy = policy or GrindPolicy()

    async def submit(self, signed: SignedTransaction) -> str:
        """
        Broadcast a signed transaction once.

        Returns:
            Signature reported by the node

        Raises:
            SubmissionRejected: If the node refuses the transaction
            NetworkUnavailable: If the node cannot be reached
        """
        signature = await self.gateway.send_raw_transaction(signed.transaction)
        logger.info(f"Transaction submitted. Signature: {signature}")
        return signature

    async def submit_if_accepted(
        self,
        signed: SignedTransaction,
        predicate: SignaturePredicate
    ) -> Optional[str]:
        """
        Broadcast a signed transaction only if the predicate accepts it.

        Args:
            signed: Transaction from the builder
            predicate: Function of the base58 signature returning True to submit

        Returns:
            Broadcast signature, or None if the predicate declined
        """
        if not predicate(signed.signature):
            logger.debug("Signature %s… declined, not submitting", signed.signature[:8])
            return None
        return await self.submit(signed)

    @staticmethod
    def _cancelled(cancel_event: Optional[asyncio.Event], result: GrindResult) -> bool:
        if cancel_event is None or not cancel_event.is_set():
            return False
        result.state = GrindState.CANCELLED
        logger.info("Grinding cancelled after %d attempts", result.attempts)
        return True

    async def _build(
        self,
        identity: Identity,
        recipient: AddressLike,
        amount: AmountLike,
        is_token: bool
    ) -> SignedTransaction:
        if is_token:
            return await self.builder.build_token_transfer(identity, recipient, amount)
        return await self.builder.build_native_transfer(identity, recipient, amount)

    async def grind_until_accepted(
        self,
        identity: Identity,
        recipient: AddressLike,
        amount: AmountLike,
        predicate: SignaturePredicate,
        is_token: bool = False,
        max_attempts: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> GrindResult:
        """
        Build transactions until one's signature satisfies the predicate.

        Args:
            identity: Sender and fee payer
            recipient: Recipient wallet address
            amount: Lamports for SOL, whole tokens for USDC
            predicate: Function of the base58 signature returning True to submit
            is_token: Build USDC transfers instead of SOL transfers
            max_attempts: Attempt budget (defaults to the policy's)
            cancel_event: Setting this event stops the run between iterations
                and after every node call, before anything is broadcast

        Returns:
            GrindResult; ``signature`` is None unless a candidate was broadcast

        Raises:
            InvalidAddress: If the recipient is malformed
            SigningFailure: If signing fails
            SubmissionRejected: If the accepted transaction is refused
            NetworkUnavailable: If the broadcast itself cannot reach the node
        """
        policy = self.policy
        budget = max_attempts if max_attempts is not None else policy.max_attempts
        if budget < 1:
            raise ValueError(f"max_attempts must be at least 1, got {budget}")

        # Malformed input is not worth grinding over
        parse_address(recipient)

        result = GrindResult(transaction=None, signature=None, attempts=0)
        logger.info("Starting to generate transactions until one matches the logic criteria...")

        while result.attempts < budget:
            if self._cancelled(cancel_event, result):
                return result

            result.state = GrindState.BUILDING
            try:
                candidate = await self._build(identity, recipient, amount, is_token)
            except SolGrindError as e:
                if not e.retryable:
                    result.state = GrindState.FAILING
                    raise
                result.transient_errors += 1
                result.last_error = e
                rate_limited_log(
                    f"Error building attempt {result.attempts + 1}: {e}",
                    level="warning",
                    logger_instance=logger
                )
                if result.transient_errors >= policy.max_transient_errors:
                    logger.warning("Giving up after %d transient errors", result.transient_errors)
                    result.state = GrindState.EXHAUSTED
                    return result
                await asyncio.sleep(policy.error_delay)
                continue

            # The build awaited the node; a cancel that landed meanwhile
            # discards the candidate before it can be broadcast
            if self._cancelled(cancel_event, result):
                return result

            result.attempts += 1
            result.transaction = candidate
            result.state = GrindState.EVALUATING
            logger.debug(f"Attempt #{result.attempts}, Signature: {candidate.signature}")

            if predicate(candidate.signature):
                logger.info(f"Found matching signature after {result.attempts} attempts!")
                result.state = GrindState.SUBMITTING
                try:
                    result.signature = await self.submit(candidate)
                except SolGrindError:
                    result.state = GrindState.FAILING
                    raise
                result.state = GrindState.ACCEPTED
                return result

            if result.attempts >= budget:
                break

            if result.attempts % policy.refresh_every == 0:
                logger.debug(f"Getting a new blockhash after {result.attempts} attempts...")
            await asyncio.sleep(policy.delay_after_rejection(result.attempts))

        logger.warning(f"Gave up after {budget} attempts.")
        result.state = GrindState.EXHAUSTED
        return result
