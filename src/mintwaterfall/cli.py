"""Command-line interface for mintwaterfall."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml

from .config import apply_config, discover_config, load_formatting_config
from .exceptions import MintWaterfallError
from .formatting import ConditionalFormatting
from .loader import load_dataset, to_serializable
from .logger import setup_logger

app = typer.Typer(
    name="mintwaterfall",
    help="Conditional formatting for waterfall chart data",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show matches, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
) -> None:
    """Global options for mintwaterfall commands."""
    setup_logger(verbose)


def _build_engine(config_path: Path | None) -> ConditionalFormatting:
    engine = ConditionalFormatting()
    if config_path is not None:
        apply_config(engine, load_formatting_config(config_path))
    return engine


@app.command(name="format")
def format_data(
    file: Annotated[Path, typer.Argument(help="Path to the data YAML/JSON file")],
    *,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config", "-c", help="Path to formatting config (default: mintwaterfall.yaml)"
        ),
    ] = None,
    scale: Annotated[
        str | None, typer.Option("--scale", "-s", help="Color scale name (overrides config)")
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    metrics: Annotated[
        bool, typer.Option("--metrics", help="Print processing metrics to stderr")
    ] = False,
) -> None:
    """Apply conditional formatting to a dataset and emit the styled items as YAML."""
    try:
        engine = _build_engine(discover_config(file, config))

        if scale is not None:
            if scale not in engine.color_scales:
                typer.echo(
                    f"Error: Unknown color scale '{scale}'. "
                    f"Valid values: {', '.join(engine.color_scales.names())}",
                    err=True,
                )
                raise typer.Exit(1)
            engine.set_color_scale(scale)

        data = load_dataset(file)
    except MintWaterfallError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    formatted = engine.apply_formatting(data)
    text = yaml.safe_dump(to_serializable(formatted), sort_keys=False, allow_unicode=True)

    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Formatted data written to {output}", err=True)
    else:
        typer.echo(text, nl=False)

    if metrics:
        stats = engine.get_metrics()
        typer.echo(
            f"Formatted {len(formatted)} items in {stats['processing_time_ms']:.3f} ms "
            f"({stats['rules_count']} rules, {stats['thresholds_count']} thresholds)",
            err=True,
        )


@app.command()
def scales(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to formatting config with extra scales"),
    ] = None,
) -> None:
    """List the registered color scales."""
    try:
        engine = _build_engine(config)
    except MintWaterfallError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    current = engine.get_color_scale()
    for name, color_scale in engine.color_scales.items():
        plain = color_scale.to_dict()
        marker = "*" if current is not None and color_scale == current else " "
        domain = ", ".join(f"{stop:g}" for stop in color_scale.domain)
        typer.echo(
            f"{marker} {name}: {plain['type']} [{domain}] -> {' '.join(color_scale.range)}"
        )


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
