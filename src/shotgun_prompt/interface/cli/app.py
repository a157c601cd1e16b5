from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merging
(defaults, persisted settings, command-line overrides), input resolution,
engine execution, and result rendering. Engine results are mapped to
process exit codes.
"""

import json
import os
import signal
import sys
import threading
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Dict, Iterator, List, Optional

from shotgun_prompt.core.pipeline.engine import CONFIRMATION_REQUIRED, INVALID_BINDINGS, run_generation
from shotgun_prompt.core.pipeline.validator import validate_config
from shotgun_prompt.core.services.scanner import expand_selection
from shotgun_prompt.core.services.templates import load_template
from shotgun_prompt.domain.config import get_default_config, load_config, save_config
from shotgun_prompt.domain.pipeline_models import GenerationResult
from shotgun_prompt.infra.logging import (
    LoggingConfig,
    configure_logging,
    get_default_log_path,
    get_logger,
)
from shotgun_prompt.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2
EXIT_NEEDS_CONFIRMATION = 3
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code.
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console on stderr; debug runs also keep a rotating file)
    log_file = get_default_log_path() if args.debug else None
    configure_logging(LoggingConfig.for_cli(args.debug, log_file))

    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Settings: defaults or persisted, then overrides, then validation
    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))
    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.save_config:
        save_config(clean_conf)
        logger.info("Effective settings saved for later runs.")

    # 4. Input resolution
    missing = [p for p in args.paths if not os.path.exists(p)]
    if missing:
        return _fail_input(f"Path does not exist: {', '.join(missing)}")

    selected = expand_selection(args.paths, respect_ignore_files=clean_conf["respect_ignore_files"])
    if not selected:
        return _fail_input("No files found in the given paths.")

    try:
        template = load_template(args.template_path)
        variables = cli_args.parse_variables(args.variables)
        task = cli_args.resolve_text(args.task, args.task_file)
        rules = cli_args.resolve_text(args.rules, args.rules_file)
    except (OSError, ValueError) as e:
        return _fail_input(str(e))

    # 5. Engine execution phase
    logger.info(f"Selected {len(selected)} file(s) for the prompt.")
    cancel = threading.Event()
    try:
        with _cancel_on_sigint(cancel):
            result = run_generation(
                clean_conf,
                template=template,
                selected_files=selected,
                task=task,
                rules=rules,
                variables=variables,
                estimate_only=bool(args.estimate_only),
                assume_yes=bool(args.assume_yes),
                cancellation_event=cancel,
            )
    except KeyboardInterrupt:
        cancel.set()
        logger.warning("Interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.critical(f"Generation crashed: {e}", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # 6. Output rendering phase
    if args.json_output:
        print(json.dumps(_result_to_dict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result)

    if result.ok:
        return EXIT_OK
    if result.cancelled:
        return EXIT_INTERRUPTED
    if result.summary.get(CONFIRMATION_REQUIRED):
        return EXIT_NEEDS_CONFIRMATION
    if result.summary.get(INVALID_BINDINGS):
        return EXIT_INVALID_INPUT
    return EXIT_FAILURE

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow-merge known, non-None override keys into the base settings."""
    out = dict(base)
    for k, v in overrides.items():
        if k in base and v is not None:
            out[k] = v
    return out


def _fail_input(msg: str) -> int:
    logger.error(msg)
    print(f"ERROR: {msg}", file=sys.stderr)
    return EXIT_INVALID_INPUT

# -----------------------------------------------------------------------------
# INTERRUPT HANDLING
# -----------------------------------------------------------------------------

@contextmanager
def _cancel_on_sigint(cancel: threading.Event) -> Iterator[None]:
    """
    Turn the first Ctrl-C into a cooperative cancellation.

    The event stops the loader pool from opening further files and the
    run ends with a cancelled result. A second Ctrl-C falls back to
    KeyboardInterrupt. Outside the main thread signals cannot be
    rebound, so the block runs unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: Any) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()
        logger.warning("Interrupt received. Cancelling after in-flight reads...")

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _result_to_dict(result: GenerationResult) -> Dict[str, Any]:
    """Serialize a result for JSON output, leaving out the prompt body."""
    data = asdict(result)
    if data.get("prompt"):
        data["prompt"].pop("content", None)
        data["prompt"]["generated_at"] = result.prompt.generated_at.isoformat()
    if result.estimate is not None:
        data["estimate"]["warning_level"] = result.estimate.warning_level.label
        data["estimate"]["estimated_tokens"] = result.estimate.estimated_tokens
    return data


def _print_human_summary(result: GenerationResult) -> None:
    """Print the execution result as a short terminal report."""
    estimate = result.estimate
    if estimate is not None:
        print(f"Estimated size: {estimate.total_size:,} bytes ({estimate.warning_level.label})")
        print(f"  - template:  {estimate.template_size:,}")
        print(f"  - files:     {estimate.file_content_size:,}")
        print(f"  - tree:      {estimate.tree_struct_size:,}")
        print(f"  - overhead:  {estimate.overhead_size:,}")
        print(f"Estimated tokens: ~{estimate.estimated_tokens:,}")

    if not result.ok:
        print(f"ERROR: {result.error}", file=sys.stderr)
        if result.summary.get(CONFIRMATION_REQUIRED):
            print("Re-run with --yes to generate anyway.", file=sys.stderr)
        return

    if result.prompt is not None:
        print(f"Files embedded: {result.prompt.file_count}")
        print(f"Prompt size: {result.prompt.total_size:,} bytes")
        print(f"Token count: {result.prompt.token_count:,}")

    if result.output_path:
        print(f"Prompt written to: {result.output_path}")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
