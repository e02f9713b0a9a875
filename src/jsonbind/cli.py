from __future__ import annotations

from pathlib import Path
from typing import List, NoReturn, Optional
import json
import logging
import sys

from pydantic import ValidationError
import typer

from jsonbind.config import mapper_defaults, type_precedence
from jsonbind.exceptions import MappingError
from jsonbind.introspection.factory import DefaultInstanceFactory
from jsonbind.introspection.model import SetterAccessor
from jsonbind.introspection.reflection import DEFAULT_TYPE_PRECEDENCE, ReflectionSchemaProvider
from jsonbind.json_io import dump_json, load_json_source, to_json_compatible
from jsonbind.mapper import JsonMapper
from jsonbind.policy import MappingPolicy, policy_from_config
from jsonbind.resolution.priority import candidate_cost, prioritize
from jsonbind.resolution.type_expr import kind_closure, parse_type_expression
from jsonbind.schema import (
    CandidateDTO,
    InspectResponse,
    PropertySchemaDTO,
    TypeExpressionResponse,
)

app = typer.Typer(add_completion=False)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level: {level}", param_hint="--log-level")
    logging.basicConfig(level=numeric, format=_LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("jsonbind").setLevel(numeric)


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _build_provider(
    section: dict[str, object], precedence_option: Optional[str]
) -> ReflectionSchemaProvider:
    precedence = (
        _split_csv(precedence_option)
        if precedence_option is not None
        else type_precedence(section)
    )
    try:
        return ReflectionSchemaProvider(precedence or DEFAULT_TYPE_PRECEDENCE)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--type-precedence") from exc


def _build_policy(section: dict[str, object], **overrides: object) -> MappingPolicy:
    try:
        return policy_from_config(section, **overrides)
    except ValidationError as exc:
        raise typer.BadParameter(
            f"invalid [mapper] configuration: {exc}", param_hint="--config"
        ) from exc


def _fail(error: MappingError) -> NoReturn:
    typer.echo(f"jsonbind: {error.kind.value}: {error.message}", err=True)
    raise typer.Exit(code=1)


@app.command("map")
def map_command(
    target: str = typer.Argument(..., help="Dotted path of the class to bind onto."),
    json_file: Optional[str] = typer.Argument(
        None, help="JSON document to read (stdin when omitted or '-')."
    ),
    strict: Optional[bool] = typer.Option(None, "--strict/--lenient"),
    preserve_union_order: Optional[bool] = typer.Option(
        None, "--preserve-union-order/--sort-union-order"
    ),
    fail_on_undefined: Optional[bool] = typer.Option(
        None, "--fail-on-undefined/--ignore-undefined"
    ),
    fail_on_missing: Optional[bool] = typer.Option(
        None, "--fail-on-missing/--ignore-missing"
    ),
    remove_unset: Optional[bool] = typer.Option(None, "--remove-unset/--keep-unset"),
    allow_non_public: Optional[bool] = typer.Option(
        None, "--allow-non-public/--public-only"
    ),
    precedence: Optional[str] = typer.Option(
        None, "--type-precedence", help="Comma separated: docstring,annotation."
    ),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Bind a JSON document onto a new instance of TARGET and print it."""
    _configure_logging(log_level)
    section = mapper_defaults(root=root, config_path=config)
    policy = _build_policy(
        section,
        strict_value_type_checking=strict,
        preserve_declared_union_order=preserve_union_order,
        fail_on_undefined_property=fail_on_undefined,
        fail_on_missing_required=fail_on_missing,
        remove_unset_attributes=remove_unset,
        allow_non_public_accessors=allow_non_public,
    )
    mapper = JsonMapper(policy, schema_provider=_build_provider(section, precedence))
    try:
        instance = mapper.factory.create(target)
    except MappingError as exc:
        raise typer.BadParameter(exc.message, param_hint="TARGET") from exc
    try:
        document = load_json_source(json_file)
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read JSON: {exc}", param_hint="JSON_FILE") from exc
    try:
        result = mapper.map(document, instance)
    except MappingError as exc:
        _fail(exc)
    typer.echo(dump_json(to_json_compatible(result)))


@app.command("types")
def types_command(
    expression: str = typer.Argument(..., help="Declared type, e.g. 'string|int[]|null'."),
    preserve_union_order: bool = typer.Option(
        False, "--preserve-union-order/--sort-union-order"
    ),
) -> None:
    """Show the candidates of a type expression in the order they are tried."""
    try:
        parsed = prioritize(
            parse_type_expression(expression),
            preserve_declared_order=preserve_union_order,
        )
    except MappingError as exc:
        _fail(exc)
    response = TypeExpressionResponse(
        source=parsed.source,
        nullable=parsed.nullable,
        candidates=[
            CandidateDTO(
                text=candidate.text,
                variant=type(candidate).__name__,
                cost=candidate_cost(candidate.text),
                kinds=sorted(kind_closure(candidate)),
            )
            for candidate in parsed.candidates
        ],
    )
    typer.echo(dump_json(response.model_dump()))


@app.command("inspect")
def inspect_command(
    target: str = typer.Argument(..., help="Dotted path of the class to inspect."),
    names: List[str] = typer.Argument(..., help="JSON keys to look up."),
    precedence: Optional[str] = typer.Option(None, "--type-precedence"),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Show how JSON keys resolve to accessors and declared types on TARGET."""
    section = mapper_defaults(root=root, config_path=config)
    provider = _build_provider(section, precedence)
    try:
        cls = DefaultInstanceFactory().resolve(target)
    except MappingError as exc:
        raise typer.BadParameter(exc.message, param_hint="TARGET") from exc
    properties: list[PropertySchemaDTO] = []
    for name in names:
        schema = provider.property_schema(cls, name)
        accessor = schema.accessor
        properties.append(
            PropertySchemaDTO(
                name=schema.name,
                exists=schema.exists,
                accessor=accessor.name if accessor is not None else None,
                accessor_kind=(
                    None
                    if accessor is None
                    else "setter" if isinstance(accessor, SetterAccessor) else "field"
                ),
                public=accessor.public if accessor is not None else None,
                declared_type=schema.declared_type,
                nullable=schema.nullable,
                required=schema.required,
            )
        )
    response = InspectResponse(
        target=target,
        properties=properties,
        required=list(provider.required_properties(cls)),
    )
    typer.echo(dump_json(response.model_dump()))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
