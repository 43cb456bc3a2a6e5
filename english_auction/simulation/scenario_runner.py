"""
Scenario Runner - replays a YAML bidding scenario against a fresh chain.

Responsibilities:
1. Load the YAML scenario (with ${VAR} environment substitution)
2. Create the chain, fund named accounts and deploy the auction
3. Execute each step at its scheduled time, recording outcomes
4. Check declared error expectations and final balances
5. Produce a summary report (text or JSON)
"""

import json
import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..config import ENV_FILE_PATH, AuctionConfig, config as default_config
from ..core.engine import AuctionEngine
from ..core.exceptions import ERRORS_BY_NAME, AuctionError
from ..infrastructure.accounts import ZERO_ADDRESS, eth_to_wei, normalize_address, wei_to_eth
from ..infrastructure.chain import Chain

# ${VAR} references in scenario files resolve against the project .env
if ENV_FILE_PATH.exists():
    load_dotenv(ENV_FILE_PATH)

logger = logging.getLogger(__name__)

ACTIONS = ("place_bid", "end_auction", "get_refund", "withdraw_partial", "emergency_withdraw", "send")


class ScenarioError(Exception):
    """Malformed scenario file."""


@dataclass
class StepResult:
    """Outcome of one scenario step."""
    index: int
    actor: str
    action: str
    timestamp: int
    ok: bool
    error: Optional[str] = None
    reason: Optional[str] = None
    expected_error: Optional[str] = None
    matched: bool = True


@dataclass
class ScenarioReport:
    """Everything a scenario run produced."""
    scenario_id: str
    steps: List[StepResult] = field(default_factory=list)
    balance_mismatches: List[str] = field(default_factory=list)
    auction: Dict[str, Any] = field(default_factory=dict)
    balances: Dict[str, str] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(step.matched for step in self.steps) and not self.balance_mismatches

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scenario_id': self.scenario_id,
            'passed': self.passed,
            'steps': [asdict(step) for step in self.steps],
            'balance_mismatches': self.balance_mismatches,
            'auction': self.auction,
            'balances': self.balances,
            'events': self.events
        }


class ScenarioRunner:
    """Runs one scenario file end to end."""

    def __init__(self, scenario_path: Path, auction_config: Optional[AuctionConfig] = None):
        self.scenario_path = Path(scenario_path)
        self.config = auction_config or default_config
        self.scenario: Dict[str, Any] = {}

        # Runtime state
        self.chain: Optional[Chain] = None
        self.engine: Optional[AuctionEngine] = None
        self.accounts: Dict[str, str] = {}
        self.report: Optional[ScenarioReport] = None

    def load_scenario(self) -> Dict[str, Any]:
        """Load and validate the scenario from YAML."""
        logger.info(f"Loading scenario from {self.scenario_path}")

        with open(self.scenario_path, 'r') as f:
            scenario_text = f.read()

        # Substitute environment variables (${VAR_NAME} pattern)
        def replace_env_var(match):
            var_name = match.group(1)
            value = os.getenv(var_name)
            if value is None:
                raise ScenarioError(f"Environment variable {var_name} not found")
            return value

        scenario_text = re.sub(r'\$\{(\w+)\}', replace_env_var, scenario_text)
        scenario = yaml.safe_load(scenario_text) or {}

        if not isinstance(scenario.get('steps'), list):
            raise ScenarioError("Scenario must define a list of steps")
        if not isinstance(scenario.get('accounts', {}), dict):
            raise ScenarioError("Scenario accounts must be a mapping of name to ETH balance")

        for index, step in enumerate(scenario['steps']):
            if step.get('action') not in ACTIONS:
                raise ScenarioError(f"Step {index}: unknown action {step.get('action')!r}")
            expected = step.get('expect_error')
            if expected is not None and expected not in ERRORS_BY_NAME:
                raise ScenarioError(f"Step {index}: unknown error name {expected!r}")

        self.scenario = scenario
        return scenario

    def setup(self):
        """Create the chain, fund accounts and deploy the auction."""
        auction_section = self.scenario.get('auction', {})
        genesis_time = auction_section.get('genesis_time', self.config.chain.genesis_time)

        self.chain = Chain(genesis_time=genesis_time)

        for name, balance_eth in self.scenario.get('accounts', {}).items():
            address = self.chain.new_address(name)
            if balance_eth is None:
                balance_eth = self.config.chain.genesis_balance_eth
            self.chain.fund(address, eth_to_wei(balance_eth))
            self.accounts[name] = address
            logger.debug(f"Account {name}: {address} ({balance_eth} ETH)")

        owner_name = auction_section.get('owner', 'owner')
        if owner_name not in self.accounts:
            self.accounts[owner_name] = self.chain.new_address(owner_name)

        duration = auction_section.get('duration_minutes', self.config.default_duration_minutes)
        self.engine = AuctionEngine(self.chain, self.accounts[owner_name], duration)
        logger.info(f"Deployed auction {self.engine.address} ({duration} min, owner {owner_name})")

    def _resolve(self, name: str) -> str:
        if name in self.accounts:
            return self.accounts[name]
        if name in ("zero", "null"):
            return ZERO_ADDRESS
        try:
            return normalize_address(name)
        except AuctionError:
            raise ScenarioError(f"Unknown account {name!r}")

    @staticmethod
    def _amount(step: Dict[str, Any], key: str) -> int:
        if f"{key}_eth" in step:
            return eth_to_wei(step[f"{key}_eth"])
        return int(step.get(key, 0))

    def _advance_clock(self, step: Dict[str, Any]):
        clock = self.chain.clock
        if 'advance' in step:
            clock.advance(step['advance'])
        if 'before_end' in step:
            clock.set(self.engine.end_time - step['before_end'])
        if 'after_end' in step:
            clock.set(self.engine.end_time + step['after_end'])

    def _dispatch(self, action: str, caller: str, step: Dict[str, Any]):
        engine = self.engine
        if action == "place_bid":
            engine.place_bid(caller, self._amount(step, "value"))
        elif action == "end_auction":
            engine.end_auction(caller)
        elif action == "get_refund":
            engine.get_refund(caller)
        elif action == "withdraw_partial":
            engine.withdraw_partial(caller, self._amount(step, "amount"))
        elif action == "emergency_withdraw":
            engine.emergency_withdraw(caller, self._resolve(step.get('to', 'zero')), self._amount(step, "amount"))
        elif action == "send":
            self.chain.transfer(caller, engine.address, self._amount(step, "amount"))

    def run_step(self, index: int, step: Dict[str, Any]) -> StepResult:
        """Execute one step and compare the outcome with its expectation."""
        self._advance_clock(step)

        actor = step.get('actor', 'owner')
        action = step['action']
        expected = step.get('expect_error')
        result = StepResult(
            index=index,
            actor=actor,
            action=action,
            timestamp=self.chain.now(),
            ok=True,
            expected_error=expected
        )

        try:
            self._dispatch(action, self._resolve(actor), step)
        except AuctionError as e:
            result.ok = False
            result.error = type(e).__name__
            result.reason = e.reason
            logger.warning(f"Step {index} ({actor} {action}) reverted: {e.reason}")

        if expected is None:
            result.matched = result.ok
        else:
            result.matched = (not result.ok) and issubclass(ERRORS_BY_NAME[result.error], ERRORS_BY_NAME[expected])

        if not result.matched:
            logger.error(f"Step {index} ({actor} {action}): expected {expected or 'success'}, got {result.error or 'success'}")
        return result

    def check_balances(self) -> List[str]:
        """Compare final balances against the scenario's ``expect.balances_eth``."""
        mismatches = []
        expected = self.scenario.get('expect', {}).get('balances_eth', {})
        for name, balance_eth in expected.items():
            actual = self.chain.balance_of(self._resolve(name))
            if actual != eth_to_wei(balance_eth):
                mismatches.append(f"{name}: expected {balance_eth} ETH, got {wei_to_eth(actual)} ETH")
        return mismatches

    def run(self) -> ScenarioReport:
        """Run the complete scenario."""
        self.load_scenario()
        scenario_id = self.scenario.get('scenario', {}).get('id', self.scenario_path.stem)
        self.report = ScenarioReport(scenario_id=scenario_id)

        logger.info(f"=== Scenario {scenario_id} ===")
        self.setup()

        for index, step in enumerate(self.scenario['steps']):
            self.report.steps.append(self.run_step(index, step))

        self.report.balance_mismatches = self.check_balances()
        self.report.auction = self.engine.info().to_dict()
        self.report.balances = {
            name: str(wei_to_eth(self.chain.balance_of(address)))
            for name, address in self.accounts.items()
        }
        self.report.balances['contract'] = str(wei_to_eth(self.engine.contract_balance()))
        self.report.events = [event.to_dict() for event in self.chain.events]

        status = "PASSED" if self.report.passed else "FAILED"
        logger.info(f"=== Scenario {scenario_id} {status} ===")
        return self.report


def format_report(report: ScenarioReport, info_text: str) -> str:
    lines = [f"Scenario: {report.scenario_id}", ""]
    for step in report.steps:
        outcome = "ok" if step.ok else f"reverted ({step.error}: {step.reason})"
        marker = "✓" if step.matched else "✗"
        lines.append(f"  {marker} [{step.index}] t={step.timestamp} {step.actor} {step.action}: {outcome}")
    lines.append("")
    lines.append(info_text)
    lines.append("")
    lines.append("Balances (ETH):")
    for name, balance in report.balances.items():
        lines.append(f"  {name:<12} {balance}")
    for mismatch in report.balance_mismatches:
        lines.append(f"  ✗ {mismatch}")
    lines.append("")
    lines.append("PASSED" if report.passed else "FAILED")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Replay an auction scenario")
    parser.add_argument("scenario", type=Path, nargs="?", help="Path to scenario YAML (or a bundled scenario name)")
    parser.add_argument("--log-level", default=default_config.log_level.upper(),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--list", action="store_true", help="List bundled scenarios and exit")

    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.list:
        for path in sorted(default_config.scenario_dir.glob("*.yaml")):
            print(path.stem)
        return 0

    if args.scenario is None:
        parser.error("a scenario path or name is required")

    scenario_path = args.scenario
    if not scenario_path.exists():
        bundled = default_config.scenario_dir / f"{scenario_path}.yaml"
        if not bundled.exists():
            parser.error(f"scenario not found: {scenario_path}")
        scenario_path = bundled

    runner = ScenarioRunner(scenario_path)
    try:
        report = runner.run()
    except ScenarioError as e:
        logger.error(f"Invalid scenario: {e}")
        return 2

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_report(report, runner.engine.info().describe()))

    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main())
