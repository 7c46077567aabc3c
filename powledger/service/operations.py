"""
Operation Service Module

Turns decoded requests into calls on a Blockchain and builds the replies.

The service owns one Blockchain, handed in at construction, for its whole
life. It keeps no other state. Each request is handled to completion
before the next one is read; mining and repair block the caller for as
long as they take.
"""

import logging
import time
from typing import Optional, Tuple

from ..blockchain.ledger import Blockchain, OutOfRange, EmptyLedger
from .messages import (
    Operation, Request, Response,
    StatusRequest, AddRequest, VerifyRequest, ViewRequest,
    CorruptRequest, RepairRequest, ExitRequest,
    StatusResponse, NormalResponse, VerificationResponse, ChainDumpResponse,
    MalformedRequest, decode_request, encode_response,
)


logger = logging.getLogger(__name__)

MALFORMED_CHOICE = -1  # choice used when the request had no readable operation


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class OperationService:
    """
    Dispatcher for the seven ledger operations.

    dispatch() works on request objects; handle_line() wraps it with the
    JSON line codec for the transport.
    """

    def __init__(self, blockchain: Blockchain, max_difficulty: Optional[int] = None):
        """
        Args:
            blockchain: The ledger to serve
            max_difficulty: Reject add requests above this difficulty
                (None means no cap)
        """
        self.blockchain = blockchain
        self.max_difficulty = max_difficulty

    def dispatch(self, request: Request) -> Response:
        """
        Run one request against the ledger.

        Engine errors (bad block index, empty chain) come back as a
        NormalResponse describing the problem rather than as exceptions.
        """
        handlers = {
            StatusRequest: self._status,
            AddRequest: self._add,
            VerifyRequest: self._verify,
            ViewRequest: self._view,
            CorruptRequest: self._corrupt,
            RepairRequest: self._repair,
            ExitRequest: self._exit,
        }
        handler = handlers.get(type(request))
        operation = getattr(request, 'OPERATION', MALFORMED_CHOICE)
        if handler is None:
            return NormalResponse(int(operation), f"Unsupported operation: {operation}")

        try:
            return handler(request)
        except (OutOfRange, EmptyLedger) as e:
            logger.warning("Operation %d failed: %s", operation, e)
            return NormalResponse(int(operation), str(e))

    def handle_line(self, line: str) -> Tuple[str, bool]:
        """
        Decode a request line, dispatch it and encode the reply.

        Returns:
            (response line, keep_session) where keep_session is False
            after an exit request
        """
        try:
            request = decode_request(line)
        except MalformedRequest as e:
            logger.warning("Malformed request: %s", e)
            choice = e.operation if e.operation is not None else MALFORMED_CHOICE
            return encode_response(NormalResponse(choice, str(e))), True

        response = self.dispatch(request)
        return encode_response(response), not isinstance(request, ExitRequest)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _status(self, request: StatusRequest) -> StatusResponse:
        chain = self.blockchain
        latest = chain.latest_block
        return StatusResponse(
            choice=int(Operation.STATUS),
            chain_size=chain.chain_size,
            chain_hash=chain.chain_hash,
            total_hashes=int(chain.total_expected_hashes),
            total_difficulty=chain.total_difficulty,
            recent_nonce=latest.nonce,
            difficulty=latest.difficulty,
            hashes_per_second=chain.hashes_per_second,
        )

    def _add(self, request: AddRequest) -> NormalResponse:
        if self.max_difficulty is not None and request.difficulty > self.max_difficulty:
            return NormalResponse(
                int(Operation.ADD),
                f"Difficulty {request.difficulty} exceeds the maximum of "
                f"{self.max_difficulty}; block not added"
            )

        logger.info("Adding a block")
        start = time.perf_counter()
        self.blockchain.new_block(request.transaction_data, request.difficulty)
        elapsed = _elapsed_ms(start)

        response = f"Total execution time to add this block was {elapsed} milliseconds"
        logger.info("Setting response to %s", response)
        return NormalResponse(int(Operation.ADD), response)

    def _verify(self, request: VerifyRequest) -> VerificationResponse:
        logger.info("Verifying entire chain")
        start = time.perf_counter()
        result = self.blockchain.validate()
        elapsed = _elapsed_ms(start)

        if result:
            logger.info("Chain verification: %s", result.message)
        else:
            logger.info("Chain verification: FALSE (%s)", result.message)
        return VerificationResponse(
            choice=int(Operation.VERIFY),
            response=f"Total execution time to verify the chain was {elapsed} milliseconds",
            verification_op=result.message,
        )

    def _view(self, request: ViewRequest) -> ChainDumpResponse:
        logger.info("View the Blockchain")
        dump = self.blockchain.to_dict()
        return ChainDumpResponse(
            choice=int(Operation.VIEW),
            blocks=dump['blocks'],
            chain_hash=dump['chainHash'],
        )

    def _corrupt(self, request: CorruptRequest) -> NormalResponse:
        logger.info("Corrupt the Blockchain")
        block = self.blockchain.corrupt_block(request.block_id, request.data)
        return NormalResponse(
            int(Operation.CORRUPT),
            f"Block {request.block_id} now holds {block.data}"
        )

    def _repair(self, request: RepairRequest) -> NormalResponse:
        logger.info("Repairing the entire chain")
        start = time.perf_counter()
        self.blockchain.repair()
        elapsed = _elapsed_ms(start)
        return NormalResponse(
            int(Operation.REPAIR),
            f"Total execution time required to repair the chain was {elapsed} milliseconds"
        )

    def _exit(self, request: ExitRequest) -> NormalResponse:
        return NormalResponse(int(Operation.EXIT), "Session closed")
