"""Command-line entry point.

``domaingen quality [GENERATOR]`` runs the quality pipeline.
``domaingen generate SPEC.json`` prints the emitted document or stub.
``domaingen generators`` lists the registered generators.
``domaingen init-config`` writes a ``.env.example`` template.
"""

from __future__ import annotations

import argparse
import logging
import sys

from domaingen.config_manager import ConfigManager
from domaingen.engine import GeneratorEngine
from domaingen.errors import CodegenError
from domaingen.parsing.parser import load_spec
from domaingen.quality.pipeline import QualityPipeline, QualityReport
from domaingen.rules.loader import load_rule_tables

logger = logging.getLogger(__name__)


def _print_report(report: QualityReport) -> None:
    print(f"Quality pipeline for {report.generator}: {report.status.upper()}")
    for step in report.steps:
        if step.passed:
            mark = "ok"
        elif step.soft:
            mark = "warn"
        else:
            mark = "FAIL"
        print(f"  [{mark:>4}] {step.name}: {step.message}")
        for detail in step.details:
            print(f"         {detail}")


def _cmd_quality(args: argparse.Namespace, config: dict[str, str]) -> int:
    report = QualityPipeline(config=config).run(args.generator)
    _print_report(report)
    return report.exit_code


def _cmd_generate(args: argparse.Namespace, config: dict[str, str]) -> int:
    rules = load_rule_tables(args.rules) if args.rules else None
    engine = GeneratorEngine(rules=rules, config=config)
    code = engine.generate(load_spec(args.spec), args.generators)
    print(code.render_stub() if args.stub else code.to_json())
    return 0


def _cmd_generators(args: argparse.Namespace, config: dict[str, str]) -> int:
    engine = GeneratorEngine(config=config)
    for generator in engine.registry.list_generators():
        requires = f" (requires {', '.join(generator.requires)})" if generator.requires else ""
        print(f"{generator.name:<14} level {generator.level}  {generator.description}{requires}")
    return 0


def _cmd_init_config(args: argparse.Namespace, config: dict[str, str]) -> int:
    try:
        path = ConfigManager().generate_env_template(args.project, overwrite=args.force)
    except FileExistsError as exc:
        logger.error("%s (use --force to replace it)", exc)
        return 1
    print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domaingen",
        description="Generate domain-pattern code from structural type specs.",
    )
    parser.add_argument("--project", default=".", help="Project root holding .env / .domaingen")
    sub = parser.add_subparsers(dest="command", required=True)

    quality = sub.add_parser("quality", help="Run the quality validation pipeline")
    quality.add_argument("generator", nargs="?", default=None, help="Generator name (default: all)")
    quality.set_defaults(func=_cmd_quality)

    generate = sub.add_parser("generate", help="Generate code for one spec file")
    generate.add_argument("spec", help="Path to a JSON type spec")
    generate.add_argument("--generators", nargs="+", default=None, help="Generators to apply")
    generate.add_argument("--rules", default=None, help="Rule tables JSON file")
    generate.add_argument("--stub", action="store_true", help="Print a Python stub instead of JSON")
    generate.set_defaults(func=_cmd_generate)

    generators = sub.add_parser("generators", help="List registered generators in emission order")
    generators.set_defaults(func=_cmd_generators)

    init_config = sub.add_parser("init-config", help="Write .env.example into the project root")
    init_config.add_argument("--force", action="store_true", help="Replace an existing .env.example")
    init_config.set_defaults(func=_cmd_init_config)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = ConfigManager().load_config(args.project)
    logging.basicConfig(
        level=config.get("DOMAINGEN_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args, config)
    except CodegenError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
