"""
Wire Messages Module

Request and response types for the ledger protocol, and their JSON
line encoding.

Protocol:
- One JSON object per line, UTF-8, in both directions
- Requests carry an integer 'operation' (0-6)
- Responses carry the same number as 'choice'

Requests:
    0 status    {}
    1 add       {difficulty, transactionData}
    2 verify    {}
    3 view      {}
    4 corrupt   {blockID, data}
    5 repair    {}
    6 exit      {}

Responses:
    status        {chainSize, chainHash, totalHashes, totalDifficulty,
                   recentNonce, difficulty, hashesPerSecond}
    normal        {response}
    verification  {response, verificationOp}
    chain dump    {blocks, chainHash}

Both sides are closed sets of frozen dataclasses; decoding parses the
JSON once and branches on the discriminator.
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, ClassVar, Dict, List, Optional, Union


# ============================================================================
# Errors
# ============================================================================

class MalformedMessage(ValueError):
    """Raised when a wire line cannot be decoded into a message."""

    def __init__(self, message: str, operation: Optional[int] = None):
        super().__init__(message)
        self.operation = operation


class MalformedRequest(MalformedMessage):
    """Request line is not JSON, lacks fields, or names no known operation."""
    pass


class MalformedResponse(MalformedMessage):
    """Response line does not match any response shape."""
    pass


# ============================================================================
# Operations
# ============================================================================

class Operation(IntEnum):
    """Operation codes understood by the server."""
    STATUS = 0
    ADD = 1
    VERIFY = 2
    VIEW = 3
    CORRUPT = 4
    REPAIR = 5
    EXIT = 6


MENU = (
    "0. View basic blockchain status.\n"
    "1. Add a transaction to the blockchain.\n"
    "2. Verify the blockchain.\n"
    "3. View the blockchain.\n"
    "4. Corrupt the chain.\n"
    "5. Hide the corruption by repairing the chain.\n"
    "6. Exit"
)


# ============================================================================
# Requests
# ============================================================================

@dataclass(frozen=True)
class StatusRequest:
    OPERATION: ClassVar[Operation] = Operation.STATUS

    def to_dict(self) -> Dict[str, Any]:
        return {'operation': int(self.OPERATION)}


@dataclass(frozen=True)
class AddRequest:
    """Append a block holding `transaction_data` mined at `difficulty`."""
    difficulty: int
    transaction_data: str
    OPERATION: ClassVar[Operation] = Operation.ADD

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': int(self.OPERATION),
            'difficulty': self.difficulty,
            'transactionData': self.transaction_data,
        }


@dataclass(frozen=True)
class VerifyRequest:
    OPERATION: ClassVar[Operation] = Operation.VERIFY

    def to_dict(self) -> Dict[str, Any]:
        return {'operation': int(self.OPERATION)}


@dataclass(frozen=True)
class ViewRequest:
    OPERATION: ClassVar[Operation] = Operation.VIEW

    def to_dict(self) -> Dict[str, Any]:
        return {'operation': int(self.OPERATION)}


@dataclass(frozen=True)
class CorruptRequest:
    """Overwrite the data of block `block_id`."""
    block_id: int
    data: str
    OPERATION: ClassVar[Operation] = Operation.CORRUPT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': int(self.OPERATION),
            'blockID': self.block_id,
            'data': self.data,
        }


@dataclass(frozen=True)
class RepairRequest:
    OPERATION: ClassVar[Operation] = Operation.REPAIR

    def to_dict(self) -> Dict[str, Any]:
        return {'operation': int(self.OPERATION)}


@dataclass(frozen=True)
class ExitRequest:
    OPERATION: ClassVar[Operation] = Operation.EXIT

    def to_dict(self) -> Dict[str, Any]:
        return {'operation': int(self.OPERATION)}


Request = Union[
    StatusRequest, AddRequest, VerifyRequest, ViewRequest,
    CorruptRequest, RepairRequest, ExitRequest,
]


def _require(data: Dict[str, Any], key: str, kind: type, operation: int) -> Any:
    """Fetch a typed field from a decoded request."""
    if key not in data:
        raise MalformedRequest(
            f"Operation {operation} requires field '{key}'", operation
        )
    value = data[key]
    # bool is an int subclass; true/false is never a valid number here
    if not isinstance(value, kind) or isinstance(value, bool):
        raise MalformedRequest(
            f"Field '{key}' must be of type {kind.__name__}", operation
        )
    return value


def decode_request(line: str) -> Request:
    """
    Parse one wire line into a request.

    Args:
        line: JSON text (trailing newline allowed)

    Returns:
        One of the request dataclasses

    Raises:
        MalformedRequest: If the line is not a JSON object, the operation
            is missing or unknown, or a required field is missing or of
            the wrong type
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRequest(f"Request is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedRequest("Request must be a JSON object")

    raw_op = data.get('operation')
    if not isinstance(raw_op, int) or isinstance(raw_op, bool):
        raise MalformedRequest("Request requires an integer 'operation'")

    try:
        operation = Operation(raw_op)
    except ValueError:
        raise MalformedRequest(f"Unsupported operation: {raw_op}", raw_op) from None

    if operation is Operation.ADD:
        difficulty = _require(data, 'difficulty', int, raw_op)
        if difficulty < 0:
            raise MalformedRequest("Difficulty cannot be negative", raw_op)
        return AddRequest(
            difficulty=difficulty,
            transaction_data=_require(data, 'transactionData', str, raw_op),
        )
    if operation is Operation.CORRUPT:
        return CorruptRequest(
            block_id=_require(data, 'blockID', int, raw_op),
            data=_require(data, 'data', str, raw_op),
        )

    simple = {
        Operation.STATUS: StatusRequest,
        Operation.VERIFY: VerifyRequest,
        Operation.VIEW: ViewRequest,
        Operation.REPAIR: RepairRequest,
        Operation.EXIT: ExitRequest,
    }
    return simple[operation]()


def encode_request(request: Request) -> str:
    """Encode a request as one JSON line (no trailing newline)."""
    return json.dumps(request.to_dict())


# ============================================================================
# Responses
# ============================================================================

@dataclass(frozen=True)
class StatusResponse:
    """Summary of the chain (operation 0)."""
    choice: int
    chain_size: int
    chain_hash: str
    total_hashes: int
    total_difficulty: int
    recent_nonce: int
    difficulty: int
    hashes_per_second: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'choice': self.choice,
            'chainSize': self.chain_size,
            'chainHash': self.chain_hash,
            'totalHashes': self.total_hashes,
            'totalDifficulty': self.total_difficulty,
            'recentNonce': self.recent_nonce,
            'difficulty': self.difficulty,
            'hashesPerSecond': self.hashes_per_second,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StatusResponse':
        return cls(
            choice=data['choice'],
            chain_size=data['chainSize'],
            chain_hash=data['chainHash'],
            total_hashes=data['totalHashes'],
            total_difficulty=data['totalDifficulty'],
            recent_nonce=data['recentNonce'],
            difficulty=data['difficulty'],
            hashes_per_second=data.get('hashesPerSecond'),
        )


@dataclass(frozen=True)
class NormalResponse:
    """Plain human-readable reply."""
    choice: int
    response: str

    def to_dict(self) -> Dict[str, Any]:
        return {'choice': self.choice, 'response': self.response}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NormalResponse':
        return cls(choice=data['choice'], response=data['response'])


@dataclass(frozen=True)
class VerificationResponse:
    """Reply to verify: timing text plus 'TRUE' or the failure message."""
    choice: int
    response: str
    verification_op: str

    @property
    def is_valid(self) -> bool:
        return self.verification_op == "TRUE"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'choice': self.choice,
            'response': self.response,
            'verificationOp': self.verification_op,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VerificationResponse':
        return cls(
            choice=data['choice'],
            response=data['response'],
            verification_op=data['verificationOp'],
        )


@dataclass(frozen=True)
class ChainDumpResponse:
    """The whole chain, block by block (operation 3)."""
    choice: int
    blocks: List[Dict[str, Any]] = field(default_factory=list)
    chain_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'choice': self.choice,
            'blocks': list(self.blocks),
            'chainHash': self.chain_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChainDumpResponse':
        return cls(
            choice=data['choice'],
            blocks=list(data['blocks']),
            chain_hash=data.get('chainHash', ""),
        )

    def chain_dict(self) -> Dict[str, Any]:
        """Payload in the form Blockchain.from_dict() accepts."""
        return {'blocks': list(self.blocks), 'chainHash': self.chain_hash}


Response = Union[StatusResponse, NormalResponse, VerificationResponse, ChainDumpResponse]


def encode_response(response: Response) -> str:
    """Encode a response as one JSON line (no trailing newline)."""
    return json.dumps(response.to_dict())


def decode_response(line: str) -> Response:
    """
    Parse one wire line into a response.

    The shape is recognised by its distinguishing field, since 'choice'
    alone does not separate, for example, a status reply from an error
    reply to the same operation.

    Raises:
        MalformedResponse: If the line matches no response shape
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict) or 'choice' not in data:
        raise MalformedResponse("Response must be a JSON object with a 'choice'")

    try:
        if 'chainSize' in data:
            return StatusResponse.from_dict(data)
        if 'verificationOp' in data:
            return VerificationResponse.from_dict(data)
        if 'blocks' in data:
            return ChainDumpResponse.from_dict(data)
        if 'response' in data:
            return NormalResponse.from_dict(data)
    except KeyError as e:
        raise MalformedResponse(f"Response is missing field {e}") from e

    raise MalformedResponse("Response matches no known shape", data['choice'])
