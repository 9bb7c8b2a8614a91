import json
from pathlib import Path

import click

from deploycfg.core.config.base_config import load_base_config
from deploycfg.core.config.resolver import ResolvedConfig, resolve_config
from deploycfg.interfaces.cli.utils import configure_logging, output_error, output_result


def _format_resolution(resolved: ResolvedConfig) -> str:
    output = []

    if resolved.manifest_path is None:
        output.append(
            click.style("ℹ️  No deployment manifest found, using base configuration only", fg="blue")
        )
    else:
        output.append(f"{click.style('📄 Manifest:', fg='cyan')} {resolved.manifest_path}")
        if resolved.changes:
            output.append(f"\n{click.style('📝 Applied overrides:', fg='cyan', bold=True)}")
            for change in resolved.changes:
                output.append(f"  🔀 {change}")
            output.append(
                f"\n{click.style(f'✅ Applied {len(resolved.changes)} override(s) from manifest', fg='green')}"
            )
        else:
            output.append("  (no overrides applied)")

    output.append(f"\n{click.style('📦 Resolved configuration:', fg='cyan', bold=True)}")
    output.append(json.dumps(resolved.config.to_document(), indent=2))
    return "\n".join(output)


@click.command(name="resolve")
@click.option(
    "--base",
    "base_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Base configuration (default: $DEPLOYCFG_BASE_CONFIG or bin/config.json)",
)
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Deployment manifest to apply instead of searching for one",
)
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--verbose", is_flag=True, help="Log each resolution step")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def resolve(
    base_path: Path | None,
    manifest_path: Path | None,
    json_output: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Resolve the final deployment configuration.

    Loads the base configuration, applies the deployment manifest on top of
    it when one exists, and prints every applied override along with the
    resulting configuration.

    \b
    Examples:
        deploycfg resolve                                  # Use bin/config.json and the local manifest
        deploycfg resolve --base config.json --manifest prod.yaml
        deploycfg resolve --json-output                    # Output results in JSON format
    """
    configure_logging(debug, verbose)

    try:
        resolved = resolve_config(lambda: load_base_config(base_path), manifest_path)

        if json_output:
            output_result(
                {
                    "manifest": str(resolved.manifest_path) if resolved.manifest_path else None,
                    "changes": [change.to_dict() for change in resolved.changes],
                    "config": resolved.config.to_document(),
                },
                json_output,
            )
        else:
            click.echo(_format_resolution(resolved))

    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
