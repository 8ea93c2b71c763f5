"""
token_ledger.fuzz
=================

Property-based fuzzing campaign for the token ledger, driven by
`hypothesis.stateful`.

The five mutating operations (`transfer`, `approve`, `transfer_from`,
`increase_allowance`, `decrease_allowance`) are rules of a state machine and
the ledger properties are checked by an invariant after every step. Each
Hypothesis example is one *sequence*: a fresh ledger followed by up to
`flows` calls with senders and counterparties drawn from `config.senders`.
Amounts are drawn from plain integers, the symbolic hints "balance" and
"allowance" (resolved against the live ledger when the call is made) and
U256 max. Calls rejected with a LedgerError count as reverts, not failures.

When a property breaks, Hypothesis shrinks the sequence and replays the
minimal one; the calls of that replay become the reported Failure. The
broken property is then dropped and the campaign re-runs on the ones still
standing, so each property is reported at most once.

Usage
-----
    from token_ledger.fuzz import Campaign, FuzzConfig

    result = Campaign(FuzzConfig(seed=7, sequences=20, flows=50)).run()
    if not result.passed:
        for f in result.failures:
            print(f.describe())

Campaigns are deterministic for a given seed (`hypothesis.seed`, no example
database). The ledger under test can be swapped through `factory`, which
receives the FuzzConfig and returns a fresh ledger whose supply sits on
`config.senders[0]`.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from hypothesis import HealthCheck, Phase, Verbosity, settings
from hypothesis import seed as fixed_seed
from hypothesis import strategies as st
from hypothesis.stateful import (RuleBasedStateMachine, invariant, rule,
                                 run_state_machine_as_test)

from .config import load_config
from .errors import LedgerError
from .ledger import TokenLedger
from .properties import DEFAULT_PROPERTIES, Property
from .safe_uint import U256_MAX

log = logging.getLogger(__name__)

OPS: Tuple[str, ...] = (
    "transfer",
    "approve",
    "transfer_from",
    "increase_allowance",
    "decrease_allowance",
)

# Symbolic amounts resolved against the ledger at call time.
HINTS: Tuple[str, ...] = ("balance", "allowance")

DEFAULT_SUPPLY = 10_000


def default_senders(width: int = 0) -> Tuple[bytes, ...]:
    """Three distinct accounts of `width` bytes (20 when width is 0)."""
    width = width or 20
    return tuple(bytes([n]) * width for n in (1, 2, 3))


DEFAULT_SENDERS: Tuple[bytes, ...] = default_senders()


def _short(addr: bytes) -> str:
    return "0x" + addr.hex()


# ------------------------------------------------------------------------------
# Calls
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Call:
    """
    One ledger call made by the state machine. `args` are the positional
    arguments after the sender; the amount is always last.
    """

    op: str
    sender: bytes
    args: Tuple[Any, ...]

    def apply(self, ledger: TokenLedger) -> Any:
        return getattr(ledger, self.op)(self.sender, *self.args)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op": self.op,
            "sender": _short(self.sender),
            "args": [_short(a) if isinstance(a, bytes) else a for a in self.args],
        }

    def __str__(self) -> str:
        rendered = ", ".join(_short(a) if isinstance(a, bytes) else str(a) for a in self.args)
        return f"{self.op}({rendered}) from {_short(self.sender)}"


class PropertyViolation(Exception):
    """Raised by the machine invariant; carries the calls made so far."""

    def __init__(self, name: str, calls: Sequence[Call]) -> None:
        super().__init__(f"property {name} violated after {len(calls)} calls")
        self.name = name
        self.calls = list(calls)


# ------------------------------------------------------------------------------
# Config & results
# ------------------------------------------------------------------------------


@dataclass
class FuzzConfig:
    seed: Optional[int] = None
    sequences: int = 50
    flows: int = 100
    # None picks default_senders() sized to TOKEN_LEDGER_ADDRESS_BYTES.
    senders: Optional[Tuple[bytes, ...]] = None
    initial_supply: int = DEFAULT_SUPPLY

    def __post_init__(self) -> None:
        if self.senders is None:
            self.senders = default_senders(load_config().address_bytes)

    @classmethod
    def from_env(cls, **overrides: Any) -> "FuzzConfig":
        """Defaults from token_ledger.config, then non-None `overrides`."""
        cfg = load_config()
        base = cls(seed=cfg.fuzz_seed, sequences=cfg.fuzz_sequences, flows=cfg.fuzz_flows)
        return replace(base, **{k: v for k, v in overrides.items() if v is not None})


@dataclass
class Failure:
    property: str
    calls: List[Call]
    # Number of sequences run when the property broke.
    sequence: int

    def describe(self) -> str:
        lines = [f"{self.property}: FAILED! with call sequence:"]
        lines.extend(f"  {i + 1}. {c}" for i, c in enumerate(self.calls))
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property": self.property,
            "sequence": self.sequence,
            "calls": [c.to_dict() for c in self.calls],
        }


@dataclass
class CampaignResult:
    seed: int
    properties: Dict[str, bool]
    failures: List[Failure] = field(default_factory=list)
    sequences: int = 0
    calls: int = 0
    reverts: int = 0
    elapsed: float = 0.0

    @property
    def passed(self) -> bool:
        return all(self.properties.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "passed": self.passed,
            "properties": dict(self.properties),
            "failures": [f.to_dict() for f in self.failures],
            "sequences": self.sequences,
            "calls": self.calls,
            "reverts": self.reverts,
            "elapsed": round(self.elapsed, 3),
        }


LedgerFactory = Callable[[FuzzConfig], TokenLedger]


def default_factory(config: FuzzConfig) -> TokenLedger:
    return TokenLedger(config.initial_supply, config.senders[0])  # type: ignore[index]


# ------------------------------------------------------------------------------
# Campaign
# ------------------------------------------------------------------------------


class Campaign:
    def __init__(
        self,
        config: Optional[FuzzConfig] = None,
        *,
        factory: Optional[LedgerFactory] = None,
        properties: Optional[Mapping[str, Property]] = None,
    ) -> None:
        self.config = config or FuzzConfig()
        if not self.config.senders:
            raise ValueError("at least one sender is required")
        self.factory = factory or default_factory
        self.properties: Dict[str, Property] = dict(DEFAULT_PROPERTIES if properties is None else properties)
        seed = self.config.seed
        self.seed = seed if seed is not None else secrets.randbits(32)

    def _holds(self, name: str, ledger: TokenLedger) -> bool:
        try:
            return bool(self.properties[name](ledger))
        except Exception:
            # Shrinking replays this many times; the Failure itself is logged once.
            log.debug("property %s raised; counting it as a violation", name, exc_info=True)
            return False

    def _settings(self) -> settings:
        return settings(
            max_examples=self.config.sequences,
            stateful_step_count=self.config.flows,
            database=None,
            deadline=None,
            derandomize=False,
            report_multiple_bugs=False,
            print_blob=False,
            verbosity=Verbosity.quiet,
            phases=(Phase.explicit, Phase.generate, Phase.shrink),
            suppress_health_check=(HealthCheck.too_slow, HealthCheck.filter_too_much, HealthCheck.data_too_large),
        )

    def _machine(self, names: Sequence[str], result: CampaignResult) -> Type[RuleBasedStateMachine]:
        """Build a state machine checking the properties in `names`."""
        campaign = self
        cfg = self.config
        accounts = st.sampled_from(cfg.senders)  # type: ignore[arg-type]
        amounts = st.one_of(
            st.integers(min_value=0, max_value=max(1, cfg.initial_supply)),
            st.sampled_from(HINTS),
            st.just(U256_MAX),
        )

        class LedgerFuzzMachine(RuleBasedStateMachine):
            def __init__(self) -> None:
                super().__init__()
                self.ledger = campaign.factory(cfg)
                self.history: List[Call] = []
                result.sequences += 1

            def _resolve(self, amount: Union[int, str], owner: bytes, spender: bytes) -> int:
                if amount == "balance":
                    return self.ledger.balance_of(owner)
                if amount == "allowance":
                    return self.ledger.allowance(owner, spender)
                return int(amount)

            def _call(self, call: Call) -> None:
                self.history.append(call)
                result.calls += 1
                try:
                    call.apply(self.ledger)
                except LedgerError:
                    result.reverts += 1

            @rule(sender=accounts, to=accounts, amount=amounts)
            def transfer(self, sender, to, amount):
                self._call(Call("transfer", sender, (to, self._resolve(amount, sender, to))))

            @rule(sender=accounts, spender=accounts, amount=amounts)
            def approve(self, sender, spender, amount):
                self._call(Call("approve", sender, (spender, self._resolve(amount, sender, spender))))

            @rule(sender=accounts, owner=accounts, to=accounts, amount=amounts)
            def transfer_from(self, sender, owner, to, amount):
                self._call(Call("transfer_from", sender, (owner, to, self._resolve(amount, owner, sender))))

            @rule(sender=accounts, spender=accounts, amount=amounts)
            def increase_allowance(self, sender, spender, amount):
                self._call(Call("increase_allowance", sender, (spender, self._resolve(amount, sender, spender))))

            @rule(sender=accounts, spender=accounts, amount=amounts)
            def decrease_allowance(self, sender, spender, amount):
                self._call(Call("decrease_allowance", sender, (spender, self._resolve(amount, sender, spender))))

            @invariant()
            def properties_hold(self) -> None:
                for name in names:
                    if not campaign._holds(name, self.ledger):
                        raise PropertyViolation(name, self.history)

        return LedgerFuzzMachine

    def run(self) -> CampaignResult:
        cfg = self.config
        # Surface a bad supply or sender width as a LedgerError before Hypothesis starts.
        self.factory(cfg)

        result = CampaignResult(seed=self.seed, properties={name: True for name in self.properties})
        started = time.monotonic()
        log.info(
            "fuzzing campaign: seed=%d sequences=%d flows=%d properties=%s",
            self.seed,
            cfg.sequences,
            cfg.flows,
            ",".join(self.properties),
        )

        standing = list(self.properties)
        while standing:
            machine = fixed_seed(self.seed)(self._machine(standing, result))
            try:
                run_state_machine_as_test(machine, settings=self._settings())
            except PropertyViolation as exc:
                # Hypothesis re-raises from its replay of the shrunk sequence.
                failure = Failure(property=exc.name, calls=exc.calls, sequence=result.sequences)
                result.properties[exc.name] = False
                result.failures.append(failure)
                standing.remove(exc.name)
                log.warning("%s", failure.describe())
            else:
                break

        result.elapsed = time.monotonic() - started
        log.info(
            "campaign finished: passed=%s calls=%d reverts=%d in %.2fs",
            result.passed,
            result.calls,
            result.reverts,
            result.elapsed,
        )
        return result


def run_campaign(config: Optional[FuzzConfig] = None, **kwargs: Any) -> CampaignResult:
    """Convenience wrapper: `Campaign(config, **kwargs).run()`."""
    return Campaign(config, **kwargs).run()


__all__ = [
    "OPS",
    "HINTS",
    "DEFAULT_SENDERS",
    "default_senders",
    "Call",
    "PropertyViolation",
    "FuzzConfig",
    "Failure",
    "CampaignResult",
    "Campaign",
    "LedgerFactory",
    "default_factory",
    "run_campaign",
]
