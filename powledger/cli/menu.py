"""
Interactive Menu Module

Text menu offering the seven ledger operations. The same menu drives an
in-process ledger (LocalBackend) or a remote server (RemoteBackend);
both expose call(request) -> response.
"""

import json
from typing import Callable

from ..service.messages import (
    MENU, Request, Response,
    StatusRequest, AddRequest, VerifyRequest, ViewRequest,
    CorruptRequest, RepairRequest, ExitRequest,
    StatusResponse, VerificationResponse, ChainDumpResponse,
)
from ..service.operations import OperationService
from ..transport.client import RemoteClient


class LocalBackend:
    """Runs requests directly against an in-process service."""

    def __init__(self, service: OperationService):
        self.service = service

    def call(self, request: Request) -> Response:
        return self.service.dispatch(request)

    def close(self) -> None:
        pass


class RemoteBackend:
    """Sends requests to a server over a persistent connection."""

    def __init__(self, client: RemoteClient):
        self.client = client

    def call(self, request: Request) -> Response:
        return self.client.call(request)

    def close(self) -> None:
        self.client.close()


class _InputClosed(Exception):
    pass


def print_response(response: Response, output: Callable[[str], None] = print) -> None:
    """Show a response the way the menu reports it."""
    if isinstance(response, StatusResponse):
        rate = response.hashes_per_second
        output(f"Current size of chain: {response.chain_size}")
        output(f"Difficulty of most recent block: {response.difficulty}")
        output(f"Total difficulty for all blocks: {response.total_difficulty}")
        output(
            "Approximate hashes per second on this machine: "
            f"{rate if rate is not None else 'unavailable'}"
        )
        output(
            "Expected total hashes required for the whole chain: "
            f"{float(response.total_hashes):.6f}"
        )
        output(f"Nonce for most recent block: {response.recent_nonce}")
        output(f"Chain hash: {response.chain_hash}")
    elif isinstance(response, VerificationResponse):
        if response.is_valid:
            output(f"Chain verification: {response.verification_op}")
        else:
            output("Chain verification: FALSE")
            output(response.verification_op)
        output(response.response)
    elif isinstance(response, ChainDumpResponse):
        output(json.dumps(response.chain_dict()))
    else:
        output(response.response)


def run_menu(
    backend,
    read: Callable[[str], str] = input,
    output: Callable[[str], None] = print
) -> int:
    """
    Run the menu loop until the user exits or input runs out.

    Args:
        backend: Object with call(request) -> response
        read: Prompt-and-read function (input() by default)
        output: Line printer (print() by default)

    Returns:
        Process exit code (0)
    """
    def ask(prompt: str) -> str:
        output(prompt)
        try:
            return read("")
        except EOFError:
            raise _InputClosed() from None

    def ask_int(prompt: str) -> int:
        return int(ask(prompt).strip())

    while True:
        try:
            choice = ask(MENU).strip()
        except _InputClosed:
            choice = "6"

        try:
            if choice == "0":
                request = StatusRequest()
            elif choice == "1":
                difficulty = ask_int("Enter difficulty > 0")
                data = ask("Enter transaction")
                request = AddRequest(difficulty=difficulty, transaction_data=data)
            elif choice == "2":
                request = VerifyRequest()
            elif choice == "3":
                output("View the Blockchain")
                request = ViewRequest()
            elif choice == "4":
                output("Corrupt the Blockchain")
                block_id = ask_int("Enter block ID of block to corrupt")
                data = ask(f"Enter new data for block {block_id}")
                request = CorruptRequest(block_id=block_id, data=data)
            elif choice == "5":
                request = RepairRequest()
            elif choice == "6":
                request = ExitRequest()
            else:
                output("Incorrect submission.")
                continue
        except ValueError:
            output("Please enter a whole number.")
            continue
        except _InputClosed:
            request = ExitRequest()

        if isinstance(request, ExitRequest):
            backend.call(request)
            return 0

        if isinstance(request, AddRequest) and request.difficulty < 0:
            output("Difficulty cannot be negative.")
            continue

        print_response(backend.call(request), output)
