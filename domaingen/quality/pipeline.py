"""QualityPipeline — validates generators the way a downstream build would.

Usage::

    from domaingen.quality import QualityPipeline

    report = QualityPipeline().run("tax")
    print(report.status)

Steps run in a fixed order and stop at the first hard failure.  The
benchmark and documentation steps are soft: a failure there marks the
report as ``warnings`` and the run continues.
"""

from __future__ import annotations

import ast
import importlib.util
import json
import logging
import sys
import timeit
from collections.abc import Callable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field

from domaingen.config_manager import get_float, get_int
from domaingen.emission.emitter import GeneratedCode
from domaingen.engine import GeneratorEngine
from domaingen.generators.base import MemberKind
from domaingen.naming import is_constant_name, is_identifier, snake_case
from domaingen.parsing.parser import parse
from domaingen.quality import baselines
from domaingen.quality.fixtures import (
    FIXTURES,
    GENERATOR_FIXTURES,
    INVALID_CUSTOMER,
    SAMPLE_ORDER,
    SAMPLE_PAYMENT,
    VALID_CUSTOMER,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class StepResult(BaseModel):
    """Result of a single pipeline step."""

    name: str = ""
    passed: bool = True
    soft: bool = False
    message: str = ""
    details: list[str] = Field(default_factory=list)


class QualityReport(BaseModel):
    """Aggregate pipeline report."""

    generator: str = "all"
    status: str = "passed"  # passed, warnings, failed
    steps: list[StepResult] = Field(default_factory=list)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if not step.passed and not step.soft:
                return step
        return None

    @property
    def exit_code(self) -> int:
        return 1 if self.status == "failed" else 0


# (step name, soft)
STEPS: list[tuple[str, bool]] = [
    ("prerequisites", False),
    ("layering", False),
    ("generation_quality", False),
    ("benchmarks", True),
    ("integration", False),
    ("compliance", False),
    ("static_quality", False),
    ("downstream_integration", False),
    ("documentation", True),
]


class QualityPipeline:
    """Run the quality steps against one generator or all of them."""

    def __init__(self, engine: GeneratorEngine | None = None, config: Mapping[str, str] | None = None) -> None:
        self.config: dict[str, str] = dict(config or {})
        self.engine = engine or GeneratorEngine(config=self.config)
        self.tolerance = get_float(self.config, "DOMAINGEN_BENCH_TOLERANCE")
        self.iterations = get_int(self.config, "DOMAINGEN_BENCH_ITERATIONS")

    def run(self, generator: str | None = None) -> QualityReport:
        """Run every step in order for *generator* (default: all registered)."""
        report = QualityReport(generator=generator or "all")
        names = [generator] if generator else self.engine.registry.names()

        for step_name, soft in STEPS:
            logger.info("Quality step: %s", step_name)
            try:
                result = getattr(self, f"_step_{step_name}")(names)
            except Exception as exc:
                logger.debug("Step %s raised", step_name, exc_info=True)
                result = StepResult(passed=False, message=f"{type(exc).__name__}: {exc}")
            result.name = step_name
            result.soft = soft
            report.steps.append(result)

            if result.passed:
                continue
            if soft:
                logger.warning("Quality step %s: %s", step_name, result.message)
                report.status = "warnings"
                continue
            logger.error("Quality step %s failed: %s", step_name, result.message)
            report.status = "failed"
            break

        return report

    # -- helpers -------------------------------------------------------------

    def _fixture_for(self, name: str) -> dict[str, Any] | None:
        key = GENERATOR_FIXTURES.get(name)
        if key is not None:
            return FIXTURES[key]
        generator = self.engine.registry.get(name)
        for spec in FIXTURES.values():
            if generator.supports(parse(spec)):
                return spec
        return None

    def _generate(self, name: str) -> GeneratedCode | None:
        spec = self._fixture_for(name)
        if spec is None:
            return None
        return self.engine.generate(spec, [name])

    @staticmethod
    def _result(failures: list[str], ok_message: str, details: list[str] | None = None) -> StepResult:
        if failures:
            return StepResult(passed=False, message=failures[0], details=failures + (details or []))
        return StepResult(passed=True, message=ok_message, details=details or [])

    # -- steps ---------------------------------------------------------------

    def _step_prerequisites(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        if sys.version_info < (3, 11):
            failures.append(f"Python 3.11+ required, found {sys.version_info.major}.{sys.version_info.minor}")
        if importlib.util.find_spec("pydantic") is None:
            failures.append("pydantic is not installed")
        if len(self.engine.registry) == 0:
            failures.append("No generators registered")
        for name in names:
            if name not in self.engine.registry:
                failures.append(
                    f"Unknown generator '{name}'. Available: {', '.join(self.engine.registry.names())}"
                )
        details = [f"rule tables {self.engine.rules.version}"]
        return self._result(failures, "Prerequisites satisfied", details)

    def _step_layering(self, names: list[str]) -> StepResult:
        details: list[str] = []
        for name in names:
            generator = self.engine.registry.get(name)
            spec = self._fixture_for(name)
            if spec is None:
                details.append(f"{name}: no fixture, skipped")
                continue
            artifact = generator.generate(parse(spec), self.engine.rules)
            self.engine.composition.check_layering([artifact], [generator])
            deps = ", ".join(sorted(d.value for d in artifact.dependencies))
            details.append(f"{name}: level {generator.level} [{deps}]")
        return StepResult(passed=True, message="No layering violations", details=details)

    def _step_generation_quality(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        for name in names:
            first = self._generate(name)
            if first is None:
                continue
            second = self._generate(name)
            if first.fingerprint != second.fingerprint:
                failures.append(f"{name}: output is not deterministic")
            artifact = next(a for a in first.artifacts if a.generator == name)
            if not artifact.members:
                failures.append(f"{name}: artifact declares no symbols")
            missing = sorted(s for s in artifact.declared_symbols if not hasattr(first.generated_type, s))
            if missing:
                failures.append(f"{name}: generated type lacks {', '.join(missing)}")
        return self._result(failures, "Generated code is complete and deterministic")

    def _benchmark_pair(self, name: str) -> tuple[Callable[[], Any], Callable[[], Any]] | None:
        code = self._generate(name)
        if code is None:
            return None
        cls = code.generated_type
        if name == "state_machine":
            hand = baselines.HandOrderStatus
            return (
                lambda: hand.PENDING.can_transition_to(hand.PAID),
                lambda: cls.Pending.can_transition_to(cls.Paid),
            )
        if name == "tax":
            order = cls(**SAMPLE_ORDER)
            amount = Decimal("100.00")
            return (
                lambda: baselines.hand_total_tax(amount, "SP"),
                lambda: order.calculate_total_tax(amount, "SP"),
            )
        if name == "shipping":
            order = cls(**SAMPLE_ORDER)
            weight = Decimal("2")
            return (
                lambda: baselines.hand_shipping_cost(weight, "SP", "SP"),
                lambda: order.calculate_shipping_cost(0, weight, "SP", "SP"),
            )
        if name == "validation":
            customer = cls(**VALID_CUSTOMER)
            return (
                lambda: baselines.hand_validate_customer(VALID_CUSTOMER["email"], VALID_CUSTOMER["cpf"]),
                lambda: customer.validate(),
            )
        if name == "identifier":
            number = cls.generate_order_number()
            return (
                lambda: baselines.hand_parse_order_number(number),
                lambda: cls.parse_identifier(number),
            )
        if name == "payment":
            payment = cls(**SAMPLE_PAYMENT)
            amount, fee = SAMPLE_PAYMENT["amount"], Decimal("2.5")
            return (
                lambda: baselines.hand_net_amount(amount, fee),
                lambda: payment.net_amount(fee),
            )
        if name == "domain_model":
            order = cls(**SAMPLE_ORDER)
            return (
                lambda: baselines.hand_cache_key("default", SAMPLE_ORDER["id"]),
                lambda: order.cache_key(),
            )
        return None

    def _step_benchmarks(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        details: list[str] = []
        for name in names:
            pair = self._benchmark_pair(name)
            if pair is None:
                details.append(f"{name}: no baseline, skipped")
                continue
            baseline, generated = pair
            base_time = min(timeit.repeat(baseline, number=self.iterations, repeat=3))
            gen_time = min(timeit.repeat(generated, number=self.iterations, repeat=3))
            ratio = gen_time / base_time if base_time else 1.0
            line = f"{name}: generated/baseline = {ratio:.3f}"
            details.append(line)
            if ratio > 1 + self.tolerance:
                failures.append(f"{line} exceeds tolerance {self.tolerance:.0%}")
        return self._result(failures, f"Within {self.tolerance:.0%} of hand-written baselines", details)

    def _step_integration(self, names: list[str]) -> StepResult:
        codes = self.engine.generate_many(list(FIXTURES.values()))
        used = {g for code in codes for g in code.generators}
        failures = [f"{name}: not applied to any fixture" for name in names if name not in used]
        details = [f"{code.descriptor.name}: {', '.join(code.generators)}" for code in codes]
        return self._result(failures, f"Composed {len(codes)} fixture types", details)

    def _step_compliance(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        for name in names:
            check = getattr(self, f"_comply_{name}", None)
            if check is None:
                continue
            code = self._generate(name)
            failures.extend(f"{name}: {msg}" for msg in check(code.generated_type))
        return self._result(failures, "Domain rules hold")

    def _step_static_quality(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        for name in names:
            code = self._generate(name)
            if code is None:
                continue
            for artifact in code.artifacts:
                for member in artifact.members:
                    if member.name.startswith("__"):
                        failures.append(f"{name}: dunder member {member.name}")
                    elif member.kind is MemberKind.CONSTANT:
                        if not is_constant_name(member.name):
                            failures.append(f"{name}: constant {member.name} is not UPPER_CASE")
                    elif not is_identifier(member.name) or snake_case(member.name) != member.name:
                        failures.append(f"{name}: member {member.name} is not snake_case")
                try:
                    json.dumps(artifact.body, sort_keys=True)
                except TypeError as exc:
                    failures.append(f"{artifact.generator}: body is not JSON-serialisable ({exc})")
        return self._result(failures, "Generated symbols follow naming conventions")

    def _step_downstream_integration(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        for spec in FIXTURES.values():
            code = self.engine.generate(spec)
            type_name = code.descriptor.name
            try:
                ast.parse(code.render_stub())
            except SyntaxError as exc:
                failures.append(f"{type_name}: stub does not parse ({exc.msg})")
            if json.loads(code.to_json())["type"]["name"] != type_name:
                failures.append(f"{type_name}: JSON document does not round-trip")
        return self._result(failures, "Emitted stubs and documents are consumable")

    def _step_documentation(self, names: list[str]) -> StepResult:
        failures: list[str] = []
        for name in names:
            generator = self.engine.registry.get(name)
            if not generator.description.strip():
                failures.append(f"{name}: generator has no description")
            spec = self._fixture_for(name)
            if spec is None:
                continue
            artifact = generator.generate(parse(spec), self.engine.rules)
            undocumented = sorted(
                m.name for m in artifact.members if m.kind is not MemberKind.CONSTANT and not m.doc
            )
            if undocumented:
                failures.append(f"{name}: undocumented members {', '.join(undocumented)}")
        return self._result(failures, "Generated members are documented")

    # -- compliance checks ---------------------------------------------------

    @staticmethod
    def _comply_state_machine(status: type) -> list[str]:
        failures = []
        if not status.Pending.can_be_cancelled():
            failures.append("Pending should be cancellable")
        if status.Shipped.can_be_cancelled():
            failures.append("Shipped should not be cancellable")
        if not status.Delivered.is_final_status():
            failures.append("Delivered should be final")
        for variant in status:
            if status.parse(variant.to_str()) is not variant:
                failures.append(f"{variant.name} does not round-trip through to_str/parse")
            if variant.is_final_status() != (not variant.allowed_transitions()):
                failures.append(f"{variant.name}: finality disagrees with edges")
        if status.try_parse("PENDING") is not None:
            failures.append("parse must be case-sensitive")
        return failures

    @staticmethod
    def _comply_tax(order_cls: type) -> list[str]:
        order = order_cls(**SAMPLE_ORDER)
        failures = []
        for subtotal in (Decimal("100.00"), Decimal("33.33"), Decimal("0.07")):
            expected = (
                order.calculate_icms(subtotal, "SP")
                + order.calculate_pis(subtotal)
                + order.calculate_cofins(subtotal)
            ).quantize(_CENT, rounding=ROUND_HALF_UP)
            if order.calculate_total_tax(subtotal, "SP") != expected:
                failures.append(f"total tax on {subtotal} is not the once-rounded sum")
        if len(order.generate_nfe_key()) != 44:
            failures.append("NFe key must have 44 digits")
        return failures

    @staticmethod
    def _comply_shipping(order_cls: type) -> list[str]:
        order = order_cls(**SAMPLE_ORDER)
        failures = []
        days = [order.estimate_delivery_days("SP", "AM", tier) for tier in ("economy", "standard", "express")]
        if days != sorted(days, reverse=True):
            failures.append(f"delivery days {days} increase with a better tier")
        known = order.calculate_shipping_cost(1, Decimal("2"), "SP", "RJ")
        unknown = order.calculate_shipping_cost(1, Decimal("2"), "SP", "ZZ")
        if unknown < known:
            failures.append("unknown routes must cost at least as much as known ones")
        return failures

    @staticmethod
    def _comply_validation(customer_cls: type) -> list[str]:
        failures = []
        if not customer_cls(**VALID_CUSTOMER).validate().is_valid:
            failures.append("valid customer rejected")
        invalid = customer_cls(**INVALID_CUSTOMER)
        errors = invalid.validate()
        field_failures = {f for f in VALID_CUSTOMER if invalid.validate_field(f) is not None}
        if set(errors.errors) != field_failures:
            failures.append("validate() disagrees with validate_field()")
        if len(errors) < 2:
            failures.append("validate() must accumulate every failure")
        return failures

    @staticmethod
    def _comply_identifier(order_cls: type) -> list[str]:
        failures = []
        number = order_cls.generate_order_number()
        parsed = order_cls.parse_identifier(number)
        if parsed is None or parsed.prefix != "PED":
            failures.append(f"{number} does not parse back to prefix PED")
        sku = order_cls.parse_identifier(order_cls.generate_sku("electronics"))
        if sku is None or sku.category != "electronics":
            failures.append("SKU category does not round-trip")
        if order_cls.parse_identifier("not an identifier") is not None:
            failures.append("malformed input must parse to None")
        return failures

    @staticmethod
    def _comply_payment(payment_cls: type) -> list[str]:
        failures = []
        payment = payment_cls(**SAMPLE_PAYMENT)
        if payment.validate_amount() is not None:
            failures.append("sample amount rejected")
        if payment.can_refund():
            failures.append("pending payments must not be refundable")
        payment.mark_processing()
        payment.mark_completed()
        if not payment.can_refund():
            failures.append("completed payments must be refundable")
        payload = payment.generate_qr_payload()
        if not payload.startswith("000201") or payload[-8:-4] != "6304":
            failures.append("QR payload is not an EMV BR Code")
        if payment_cls.calculate_boleto_dv("12345") != "5":
            failures.append("boleto check digit changed")
        if payment_cls.parse_brl_amount(payment_cls.format_brl_amount(payment.amount)) != payment.amount:
            failures.append("BRL formatting does not round-trip")
        return failures

    @staticmethod
    def _comply_domain_model(order_cls: type) -> list[str]:
        order = order_cls(**SAMPLE_ORDER)
        failures = []
        if order.cache_key() != f"default:order:{SAMPLE_ORDER['id']}":
            failures.append("cache key format changed")
        if order_cls.cache_key_for("default", SAMPLE_ORDER["id"]) != order.cache_key():
            failures.append("cache_key_for disagrees with cache_key")
        return failures
