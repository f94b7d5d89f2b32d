"""
Scenario Runner

Replays a scenario file (YAML or JSON) against a fresh ledger. A scenario
declares optional ledger settings, programmable accounts with a canned
receiver behavior, and an ordered list of steps that map onto ledger entry
points.

    ledger:
      admin: admin
    contracts:
      vault: accept
      trap: {behavior: reject, reason: "not today"}
    steps:
      - {op: mint, caller: admin, account: alice, token_id: 7, amount: 100,
         public_uri: pub, private_uri: priv}
      - {op: safeTransferFrom, caller: alice, from: alice, to: vault,
         token_id: 7, amount: 5}
"""

import json
import logging
import time
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from cli.config import load_yaml
from ledger import (
    BATCH_RECEIVED_MARKER, LedgerError, LedgerSettings, MultiTokenLedger,
    RECEIVED_MARKER, ReceiverRejection, TokenHolder
)


class ScenarioError(Exception):
    """Raised for malformed scenario files or steps."""
    pass


# step op -> (ledger method, argument names, mutating)
OPERATIONS: Dict[str, Tuple[str, Tuple[str, ...], bool]] = {
    'balance_of': ('balance_of', ('account', 'token_id'), False),
    'balance_of_batch': ('balance_of_batch', ('accounts', 'token_ids'), False),
    'is_approved_for_all': ('is_approved_for_all', ('owner', 'operator'), False),
    'is_locked': ('is_locked', ('token_id',), False),
    'get_admin': ('get_admin', (), False),
    'uri': ('uri', ('token_id',), False),
    'supports_interface': ('supports_interface', ('interface_id',), False),
    'total_supply': ('total_supply', ('token_id',), False),
    'set_approval_for_all': ('set_approval_for_all', ('operator', 'approved'), True),
    'safe_transfer_from': ('safe_transfer_from', ('from', 'to', 'token_id', 'amount', 'data'), True),
    'safe_batch_transfer_from': (
        'safe_batch_transfer_from', ('from', 'to', 'token_ids', 'amounts', 'data'), True
    ),
    'mint': ('mint', ('account', 'token_id', 'amount', 'public_uri', 'private_uri', 'data'), True),
    'mint_batch': (
        'mint_batch', ('to', 'token_ids', 'amounts', 'public_uris', 'private_uris', 'data'), True
    ),
    'burn': ('burn', ('account', 'token_id', 'amount'), True),
    'burn_batch': ('burn_batch', ('account', 'token_ids', 'amounts'), True),
    'change_admin': ('change_admin', ('new_admin',), True),
    'unlock': ('unlock', ('token_id', 'creators'), True),
}

# Entry point names as published in the interface description
ALIASES = {
    'balanceOf': 'balance_of',
    'balanceOfBatch': 'balance_of_batch',
    'isApprovedForAll': 'is_approved_for_all',
    'isLocked': 'is_locked',
    'getAdmin': 'get_admin',
    'supportsInterface': 'supports_interface',
    'totalSupply': 'total_supply',
    'setApprovalForAll': 'set_approval_for_all',
    'safeTransferFrom': 'safe_transfer_from',
    'safeBatchTransferFrom': 'safe_batch_transfer_from',
    'mintBatch': 'mint_batch',
    'burnBatch': 'burn_batch',
    'changeAdmin': 'change_admin',
}

OPTIONAL_ARGS = {'data': b""}

RECEIVER_BEHAVIORS = ('accept', 'reject', 'wrong-marker', 'incompatible')


class ScriptedReceiver:
    """Receiver whose answer is fixed by the scenario."""

    def __init__(self, behavior: str, reason: str = "rejected by scenario"):
        self.behavior = behavior
        self.reason = reason
        self.received: List[Tuple] = []

    def _answer(self, marker: bytes) -> bytes:
        if self.behavior == 'reject':
            raise ReceiverRejection(self.reason)
        if self.behavior == 'wrong-marker':
            return b"\x00" * 4
        return marker

    def on_received(self, operator, from_, token_id, amount, data):
        self.received.append((operator, from_, token_id, amount, data))
        return self._answer(RECEIVED_MARKER)

    def on_batch_received(self, operator, from_, token_ids, amounts, data):
        self.received.append((operator, from_, token_ids, amounts, data))
        return self._answer(BATCH_RECEIVED_MARKER)


def build_receiver(spec: Union[str, Dict[str, Any]]) -> Any:
    """Create a receiver object from a scenario contract entry."""
    if isinstance(spec, str):
        spec = {'behavior': spec}

    behavior = spec.get('behavior', 'accept')
    if behavior not in RECEIVER_BEHAVIORS:
        raise ScenarioError(f"Unknown receiver behavior: {behavior}")

    if behavior == 'accept':
        return TokenHolder()
    if behavior == 'incompatible':
        # No callback surface at all
        return object()
    return ScriptedReceiver(behavior, spec.get('reason', "rejected by scenario"))


def parse_data(value: Any) -> bytes:
    """Convert a scenario data value to bytes ('0x..' hex or plain text)."""
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    value = str(value)
    if value.startswith('0x'):
        try:
            return bytes.fromhex(value[2:])
        except ValueError as e:
            raise ScenarioError(f"Invalid hex data: {value}") from e
    return value.encode('utf-8')


def load_scenario(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a scenario from a YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise ScenarioError(f"Scenario file not found: {path}")

    try:
        with open(path, 'r') as f:
            if path.suffix == '.json':
                scenario = json.load(f)
            else:
                scenario = load_yaml(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ScenarioError(f"Invalid scenario file {path}: {e}") from e

    if not isinstance(scenario, dict) or not isinstance(scenario.get('steps', []), list):
        raise ScenarioError("Scenario must be a mapping with a list of steps")
    return scenario


@dataclass
class StepResult:
    """Outcome of a single scenario step."""
    index: int
    op: str
    caller: Optional[str]
    status: str
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    events: int = 0

    @property
    def ok(self) -> bool:
        return self.status == 'ok'


@dataclass
class ScenarioReport:
    """Complete scenario execution."""
    steps: List[StepResult] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)
    balances: List[Dict[str, Any]] = field(default_factory=list)
    duration: float = 0.0
    aborted: bool = False

    @property
    def failed_steps(self) -> int:
        return len([s for s in self.steps if not s.ok])

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['failed_steps'] = self.failed_steps
        return data


class ScenarioRunner:
    """Executes scenario steps against a ledger."""

    def __init__(self, settings: LedgerSettings, stop_on_error: bool = False):
        self.logger = logging.getLogger('mtl-cli.scenario')
        self.settings = settings
        self.stop_on_error = stop_on_error
        self.ledger: Optional[MultiTokenLedger] = None

    def _build_ledger(self, scenario: Dict[str, Any]) -> MultiTokenLedger:
        overrides = scenario.get('ledger') or {}
        settings = LedgerSettings(**{**self.settings.model_dump(), **overrides})
        ledger = MultiTokenLedger(settings)

        for account, spec in (scenario.get('contracts') or {}).items():
            ledger.register_receiver(account, build_receiver(spec))
            self.logger.debug(f"Registered programmable account {account}")

        return ledger

    def _resolve_op(self, step: Dict[str, Any]) -> str:
        op = step.get('op')
        if not op:
            raise ScenarioError("Step is missing 'op'")
        op = ALIASES.get(op, op)
        if op not in OPERATIONS:
            raise ScenarioError(f"Unknown operation: {op}")
        return op

    def _call_args(self, op: str, step: Dict[str, Any]) -> List[Any]:
        _, arg_names, mutating = OPERATIONS[op]
        args = []
        if mutating:
            if 'caller' not in step:
                raise ScenarioError(f"Step '{op}' needs a caller")
            args.append(step['caller'])

        for name in arg_names:
            if name in step:
                value = step[name]
            elif name in OPTIONAL_ARGS:
                value = OPTIONAL_ARGS[name]
            else:
                raise ScenarioError(f"Step '{op}' is missing argument '{name}'")
            args.append(parse_data(value) if name == 'data' else value)

        return args

    def run_step(self, index: int, step: Dict[str, Any]) -> StepResult:
        """Run one step; ledger errors become a failed step result."""
        op = self._resolve_op(step)
        method_name = OPERATIONS[op][0]
        args = self._call_args(op, step)
        before = len(self.ledger.event_log)

        try:
            result = getattr(self.ledger, method_name)(*args)
        except LedgerError as e:
            self.logger.info(f"Step {index} ({op}) failed: {type(e).__name__}: {e}")
            return StepResult(
                index=index, op=op, caller=step.get('caller'), status='failed',
                error=str(e), error_type=type(e).__name__
            )

        return StepResult(
            index=index, op=op, caller=step.get('caller'), status='ok',
            result=result, events=len(self.ledger.event_log) - before
        )

    def run(self, scenario: Dict[str, Any]) -> ScenarioReport:
        """Run all steps of a scenario on a fresh ledger."""
        start_time = time.time()
        self.ledger = self._build_ledger(scenario)
        report = ScenarioReport()

        for index, step in enumerate(scenario.get('steps', []), start=1):
            if not isinstance(step, dict):
                raise ScenarioError(f"Step {index} must be a mapping")

            result = self.run_step(index, step)
            report.steps.append(result)

            if not result.ok and self.stop_on_error:
                report.aborted = True
                break

        report.events = [event.to_dict() for event in self.ledger.events]
        report.balances = self.ledger.holdings()
        report.duration = time.time() - start_time
        return report
