from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
settings overrides and template bindings.
"""

import argparse
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the shotgun-prompt CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="shotgun-prompt",
        description="Build a single LLM prompt from a template and a set of project files.",
    )

    # --- Selection ---
    p.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Files or directories to embed. Directories expand to the files beneath them.",
    )
    p.add_argument(
        "-t", "--template",
        dest="template_path",
        required=True,
        help="Template file (.toml structured template or plain text).",
    )

    # --- Free-text Inputs ---
    task = p.add_mutually_exclusive_group()
    task.add_argument("--task", dest="task", default=None, help="Task description bound to {{TASK}}.")
    task.add_argument("--task-file", dest="task_file", default=None, help="Read the task description from a file.")

    rules = p.add_mutually_exclusive_group()
    rules.add_argument("--rules", dest="rules", default=None, help="Rules text bound to {{RULES}}.")
    rules.add_argument("--rules-file", dest="rules_file", default=None, help="Read the rules text from a file.")

    p.add_argument(
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra template binding. May be repeated.",
    )

    # --- Output ---
    p.add_argument(
        "-o", "--output-dir",
        dest="output_dir",
        default=None,
        help="Directory receiving the prompt file (default: current directory).",
    )

    # --- Builder Limits ---
    p.add_argument(
        "--max-file-size",
        dest="max_file_size",
        type=int,
        default=None,
        metavar="BYTES",
        help="Files larger than this are replaced by a placeholder.",
    )
    p.add_argument(
        "--max-concurrency",
        dest="max_concurrency",
        type=int,
        default=None,
        metavar="N",
        help="Number of files read in parallel.",
    )

    # --- Tree Format ---
    p.add_argument("--ascii", action="store_true", help="Draw the tree with ASCII glyphs.")
    p.add_argument("--show-sizes", action="store_true", help="Append file sizes to tree leaves.")
    p.add_argument("--hide-binary", action="store_true", help="Omit binary placeholders from the output.")

    # --- Directory Expansion ---
    p.add_argument(
        "--no-ignore",
        dest="no_ignore",
        action="store_true",
        help="Do not apply .gitignore or .shotgunignore rules when expanding directories.",
    )

    # --- Runtime ---
    p.add_argument(
        "--estimate-only",
        action="store_true",
        help="Print the size estimate and exit without generating.",
    )
    p.add_argument(
        "-y", "--yes",
        dest="assume_yes",
        action="store_true",
        help="Proceed even when the estimate reaches the Excessive tier.",
    )
    p.add_argument(
        "--model",
        dest="target_model",
        default=None,
        help="Model name used to pick the token encoding.",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the saved configuration file.",
    )
    p.add_argument(
        "--save-config",
        action="store_true",
        help="Persist the effective settings (saved values plus these flags) for later runs.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the result as JSON.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a settings overrides dictionary.

    Only flags the user actually supplied are included, so saved settings
    survive for everything else.
    """
    overrides: Dict[str, Any] = {}

    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.max_file_size is not None:
        overrides["max_file_size"] = args.max_file_size
    if args.max_concurrency is not None:
        overrides["max_concurrency"] = args.max_concurrency
    if args.target_model is not None:
        overrides["target_model"] = args.target_model

    if args.ascii:
        overrides["use_unicode"] = False
    if args.show_sizes:
        overrides["show_sizes"] = True
    if args.hide_binary:
        overrides["show_binary"] = False
    if args.no_ignore:
        overrides["respect_ignore_files"] = False

    return overrides


def parse_variables(items: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated ``KEY=VALUE`` arguments.

    Raises:
        ValueError: If an item lacks '=' or has an empty key.
    """
    out: Dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid --var '{item}': expected KEY=VALUE.")
        out[key] = value
    return out


def resolve_text(inline: Optional[str], file_path: Optional[str]) -> str:
    """
    Return inline text, or the content of ``file_path``, or "".

    Raises:
        OSError: If the file cannot be read.
    """
    if inline is not None:
        return inline
    if file_path:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    return ""
