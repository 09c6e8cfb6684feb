"""run / chain — execute services from the command line.

Targets are given as ``package.module:ClassName``. Parameters passed with
``-p key=value`` are forwarded to the service constructor as strings.
"""

from __future__ import annotations

import importlib
from typing import Any

import click

from bbservices.chain import ServiceChain
from bbservices.commands._context import AppContext
from bbservices.errors import ServiceContractError
from bbservices.service import Service


def load_service_class(target: str) -> type[Service]:
    """Import ``module:Class`` and check that it is a Service subclass."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected 'module:Class', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name!r}: {exc}") from exc

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise click.BadParameter(f"{module_name!r} has no attribute {attr!r}") from exc

    if not (isinstance(obj, type) and issubclass(obj, Service)):
        raise click.BadParameter(f"{target!r} is not a Service subclass")
    return obj


def parse_params(values: tuple[str, ...]) -> dict[str, str]:
    """Turn ``("a=1", "b=x")`` into ``{"a": "1", "b": "x"}``."""
    params: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--param")
        params[key] = value
    return params


def _construct(service_cls: type[Service], params: dict[str, str]) -> Service:
    try:
        return service_cls(**params)
    except TypeError as exc:
        raise click.ClickException(f"cannot construct {service_cls.__qualname__}: {exc}") from exc


@click.command()
@click.argument("target")
@click.option("-p", "--param", "params", multiple=True, help="Constructor argument as key=value.")
@click.option("--unsafe", is_flag=True, help="Use run_unsafe: hook errors abort the command.")
@click.pass_obj
def run(app: AppContext, target: str, params: tuple[str, ...], unsafe: bool) -> None:
    """Run the service TARGET (module:Class) and report its outcome."""
    service = _construct(load_service_class(target), parse_params(params))
    try:
        if unsafe:
            service.run_unsafe()
        else:
            service.run()
    except ServiceContractError as exc:
        raise click.ClickException(str(exc)) from exc
    except Exception as exc:
        click.echo(f"Error: {type(exc).__name__}: {exc}", err=True)
    app.emit(service.to_result())


@click.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("-p", "--param", "params", multiple=True, help="Seed constructor argument.")
@click.pass_obj
def chain(app: AppContext, targets: tuple[str, ...], params: tuple[str, ...]) -> None:
    """Run TARGETS as a chain; later services run only if the previous one succeeded.

    The first service receives the ``--param`` values; the rest are
    constructed without arguments.
    """
    classes = [load_service_class(t) for t in targets]
    try:
        result = ServiceChain(_construct(classes[0], parse_params(params)).run())
        for service_cls in classes[1:]:
            result = result.then(lambda _prev, cls=service_cls: _construct(cls, {}).run())
    except ServiceContractError as exc:
        raise click.ClickException(str(exc)) from exc

    app.emit(result.to_result())
