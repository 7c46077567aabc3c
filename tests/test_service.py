"""
Unit tests for the service layer.

Tests:
- Request decoding
- Response encoding and decoding
- Operation dispatch
- Error replies
"""

import json

import pytest

from powledger.blockchain.ledger import Blockchain, create_blockchain
from powledger.service.messages import (
    Operation, decode_request, encode_request, decode_response, encode_response,
    StatusRequest, AddRequest, VerifyRequest, ViewRequest,
    CorruptRequest, RepairRequest, ExitRequest,
    StatusResponse, NormalResponse, VerificationResponse, ChainDumpResponse,
    MalformedRequest, MalformedResponse,
)
from powledger.service.operations import OperationService, MALFORMED_CHOICE


@pytest.fixture
def service():
    return OperationService(create_blockchain(genesis_difficulty=1, benchmark=False))


class TestDecodeRequest:
    """Tests for decode_request."""

    @pytest.mark.parametrize("operation, expected", [
        (0, StatusRequest), (2, VerifyRequest), (3, ViewRequest),
        (5, RepairRequest), (6, ExitRequest),
    ])
    def test_simple_operations(self, operation, expected):
        assert isinstance(decode_request(json.dumps({'operation': operation})), expected)

    def test_add(self):
        request = decode_request('{"operation": 1, "difficulty": 3, "transactionData": "tx1"}')
        assert request == AddRequest(difficulty=3, transaction_data="tx1")

    def test_corrupt(self):
        request = decode_request('{"operation": 4, "blockID": 2, "data": "hacked"}\n')
        assert request == CorruptRequest(block_id=2, data="hacked")

    def test_encode_matches_wire_names(self):
        line = encode_request(AddRequest(difficulty=2, transaction_data="tx"))
        assert json.loads(line) == {'operation': 1, 'difficulty': 2, 'transactionData': "tx"}

    def test_encode_decode_corrupt(self):
        request = CorruptRequest(block_id=0, data="x")
        assert decode_request(encode_request(request)) == request

    def test_unknown_operation(self):
        with pytest.raises(MalformedRequest) as exc_info:
            decode_request('{"operation": 9}')
        assert exc_info.value.operation == 9
        assert str(exc_info.value) == "Unsupported operation: 9"

    def test_not_json(self):
        with pytest.raises(MalformedRequest):
            decode_request("hello")

    def test_not_an_object(self):
        with pytest.raises(MalformedRequest):
            decode_request("[0]")

    def test_missing_operation(self):
        with pytest.raises(MalformedRequest):
            decode_request('{"difficulty": 1}')

    def test_boolean_operation_rejected(self):
        with pytest.raises(MalformedRequest):
            decode_request('{"operation": true}')

    def test_add_missing_field(self):
        with pytest.raises(MalformedRequest) as exc_info:
            decode_request('{"operation": 1, "difficulty": 1}')
        assert exc_info.value.operation == 1

    def test_add_wrong_type(self):
        with pytest.raises(MalformedRequest):
            decode_request('{"operation": 1, "difficulty": "2", "transactionData": "x"}')

    def test_add_negative_difficulty(self):
        with pytest.raises(MalformedRequest):
            decode_request('{"operation": 1, "difficulty": -1, "transactionData": "x"}')

    def test_corrupt_missing_block_id(self):
        with pytest.raises(MalformedRequest):
            decode_request('{"operation": 4, "data": "x"}')


class TestResponses:
    """Tests for response encoding."""

    def test_status_wire_names(self):
        response = StatusResponse(
            choice=0, chain_size=2, chain_hash="00AB", total_hashes=272,
            total_difficulty=3, recent_nonce=5, difficulty=1, hashes_per_second=None
        )
        data = json.loads(encode_response(response))
        assert data == {
            'choice': 0, 'chainSize': 2, 'chainHash': "00AB", 'totalHashes': 272,
            'totalDifficulty': 3, 'recentNonce': 5, 'difficulty': 1,
            'hashesPerSecond': None,
        }
        assert decode_response(encode_response(response)) == response

    def test_normal(self):
        response = NormalResponse(4, "Block 0 now holds hacked")
        assert decode_response(encode_response(response)) == response

    def test_verification(self):
        response = VerificationResponse(2, "Total execution time to verify the chain was 0 milliseconds", "TRUE")
        decoded = decode_response(encode_response(response))
        assert decoded == response
        assert decoded.is_valid

    def test_chain_dump(self):
        response = ChainDumpResponse(3, blocks=[{'index': 0}], chain_hash="00")
        decoded = decode_response(encode_response(response))
        assert isinstance(decoded, ChainDumpResponse)
        assert decoded.chain_dict() == {'blocks': [{'index': 0}], 'chainHash': "00"}

    def test_unknown_shape(self):
        with pytest.raises(MalformedResponse):
            decode_response('{"choice": 1}')

    def test_missing_field(self):
        with pytest.raises(MalformedResponse):
            decode_response('{"choice": 0, "chainSize": 1}')

    def test_not_json(self):
        with pytest.raises(MalformedResponse):
            decode_response("nope")


class TestOperationService:
    """Tests for OperationService.dispatch()."""

    def test_status(self, service):
        response = service.dispatch(StatusRequest())
        chain = service.blockchain

        assert isinstance(response, StatusResponse)
        assert response.choice == Operation.STATUS
        assert response.chain_size == 1
        assert response.chain_hash == chain.chain_hash
        assert response.total_hashes == 16
        assert response.total_difficulty == 1
        assert response.recent_nonce == chain.latest_block.nonce
        assert response.difficulty == 1
        assert response.hashes_per_second is None

    def test_add(self, service):
        response = service.dispatch(AddRequest(difficulty=1, transaction_data="tx1"))

        assert isinstance(response, NormalResponse)
        assert response.choice == Operation.ADD
        assert response.response.startswith("Total execution time to add this block was ")
        assert response.response.endswith(" milliseconds")
        assert service.blockchain.chain_size == 2
        assert service.blockchain.latest_block.data == "tx1"

    def test_add_above_cap_rejected(self):
        service = OperationService(
            create_blockchain(genesis_difficulty=0, benchmark=False), max_difficulty=2
        )
        response = service.dispatch(AddRequest(difficulty=3, transaction_data="tx"))

        assert "exceeds the maximum" in response.response
        assert service.blockchain.chain_size == 1

    def test_verify(self, service):
        response = service.dispatch(VerifyRequest())

        assert isinstance(response, VerificationResponse)
        assert response.verification_op == "TRUE"
        assert response.response.startswith("Total execution time to verify the chain was ")

    def test_verify_reports_failure(self, service):
        service.dispatch(CorruptRequest(block_id=0, data="hacked"))
        response = service.dispatch(VerifyRequest())

        assert not response.is_valid
        assert "0" in response.verification_op

    def test_view(self, service):
        service.dispatch(AddRequest(difficulty=0, transaction_data="tx1"))
        response = service.dispatch(ViewRequest())

        assert isinstance(response, ChainDumpResponse)
        assert [b['data'] for b in response.blocks] == ["Genesis", "tx1"]
        assert response.chain_hash == service.blockchain.chain_hash

    def test_corrupt(self, service):
        response = service.dispatch(CorruptRequest(block_id=0, data="hacked"))

        assert response == NormalResponse(4, "Block 0 now holds hacked")
        assert service.blockchain.get_block(0).data == "hacked"

    def test_corrupt_out_of_range(self, service):
        response = service.dispatch(CorruptRequest(block_id=7, data="hacked"))

        assert isinstance(response, NormalResponse)
        assert response.choice == 4
        assert "out of range" in response.response

    def test_repair(self, service):
        service.dispatch(CorruptRequest(block_id=0, data="hacked"))
        response = service.dispatch(RepairRequest())

        assert response.response.startswith(
            "Total execution time required to repair the chain was "
        )
        assert service.blockchain.validate().valid

    def test_status_on_empty_chain(self):
        service = OperationService(Blockchain())
        response = service.dispatch(StatusRequest())

        assert isinstance(response, NormalResponse)
        assert "no blocks" in response.response

    def test_unsupported_request_object(self, service):
        response = service.dispatch(object())
        assert response.choice == MALFORMED_CHOICE
        assert response.response.startswith("Unsupported operation")


class TestHandleLine:
    """Tests for OperationService.handle_line()."""

    def test_round_trip(self, service):
        line, keep = service.handle_line('{"operation": 0}\n')
        assert keep
        assert json.loads(line)['chainSize'] == 1

    def test_exit_ends_session(self, service):
        line, keep = service.handle_line('{"operation": 6}')
        assert not keep
        assert json.loads(line) == {'choice': 6, 'response': "Session closed"}

    def test_unknown_operation_keeps_session(self, service):
        line, keep = service.handle_line('{"operation": 42}')
        assert keep
        assert json.loads(line) == {'choice': 42, 'response': "Unsupported operation: 42"}

    def test_garbage_keeps_session(self, service):
        line, keep = service.handle_line('not json')
        data = json.loads(line)
        assert keep
        assert data['choice'] == MALFORMED_CHOICE
        assert "not valid JSON" in data['response']
