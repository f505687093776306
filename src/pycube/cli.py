"""pycube CLI - Verify classes against interfaces and inspect interface definitions.

Commands:
    pycube verify     Check a class against an interface (presence and arity)
    pycube describe   Show the effective methods of an interface

Objects are referenced as ``package.module:Attribute``.
"""

import importlib
import json
import logging
import sys
from typing import Any

import click

from pycube.config import get_config
from pycube.enforcer import check_conformance
from pycube.interfaces import InterfaceSpec


def _load(ref: str) -> Any:
    """Resolve ``module:attr.path`` to an object."""
    if ":" not in ref:
        raise click.BadParameter(f"'{ref}' must look like package.module:Attribute")
    module_name, attr_path = ref.split(":", 1)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import '{module_name}': {e}")
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise click.BadParameter(f"'{module_name}' has no attribute '{attr_path}'")
    return obj


def _load_interface(ref: str) -> InterfaceSpec:
    obj = _load(ref)
    if not isinstance(obj, InterfaceSpec):
        raise click.BadParameter(f"'{ref}' is not an interface")
    return obj


@click.group()
def main():
    """pycube - structural interfaces and traits for Python classes."""
    logging.basicConfig(
        level=get_config().log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("verify")
@click.argument("target")
@click.argument("interface_ref", metavar="INTERFACE")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def verify_cmd(target: str, interface_ref: str, as_json: bool):
    """Check TARGET (a class) against INTERFACE.

    Exits with status 1 when a required method is missing or an
    arity does not match.

    Example:
        pycube verify myapp.calc:SimpleCalcImpl myapp.contracts:Calculator
    """
    cls = _load(target)
    if not isinstance(cls, type):
        raise click.BadParameter(f"'{target}' is not a class")
    iface = _load_interface(interface_ref)

    result = check_conformance(cls, iface)
    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        status = "PASS" if result.passed else "FAIL"
        click.echo(f"[{status}] {result.message}")
        for meth in result.missing_methods:
            click.echo(f"  missing: {meth}")
        for mismatch in result.arity_mismatches:
            click.echo(
                f"  arity: {mismatch.method} takes {mismatch.actual}, "
                f"expected {mismatch.expected}"
            )
    if not result.passed:
        sys.exit(1)


@main.command("describe")
@click.argument("interface_ref", metavar="INTERFACE")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
def describe_cmd(interface_ref: str, as_json: bool):
    """Show the effective methods of INTERFACE, inherited ones included."""
    iface = _load_interface(interface_ref)
    methods = iface.effective_methods()
    optional = iface.optional

    if as_json:
        data = {
            "name": iface.name,
            "parents": [p.name for p in iface.parents],
            "methods": {m: (str(s) if s is not None else None) for m, s in methods.items()},
            "optional": sorted(optional),
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"Interface {iface.name}")
    if iface.parents:
        click.echo(f"  extends: {', '.join(p.name for p in iface.parents)}")
    for meth, sig in methods.items():
        suffix = " (optional)" if meth in optional else ""
        click.echo(f"  {meth}{sig if sig is not None else ''}{suffix}")


if __name__ == "__main__":
    main()
