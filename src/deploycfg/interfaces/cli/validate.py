from pathlib import Path

import click

from deploycfg.core.config.locator import find_manifest_file, read_manifest
from deploycfg.core.config.models import DeploymentManifestModel
from deploycfg.core.config.validator import validate_manifest
from deploycfg.interfaces.cli.utils import configure_logging, output_error, output_result


def _format_validation_result(path: Path, manifest: DeploymentManifestModel) -> str:
    output = [f"{click.style('✅ Deployment manifest validated successfully', fg='green', bold=True)}"]
    output.append(f"\n{click.style('📄 File:', fg='cyan')} {path}")
    output.append(f"{click.style('📋 Prefix:', fg='cyan')} {manifest.prefix}")

    overridden = sorted(manifest.model_dump(by_alias=True, exclude_unset=True))
    output.append(f"{click.style('🔀 Overrides:', fg='cyan')} {', '.join(overridden)}")
    return "\n".join(output)


@click.command(name="validate")
@click.argument("manifest", required=False, type=click.Path(path_type=Path, dir_okay=False))
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def validate(manifest: Path | None, json_output: bool, debug: bool) -> None:
    """Validate a deployment manifest.

    Without an argument the manifest is located the same way a deployment
    does: DEPLOYMENT_MANIFEST, then deployment-manifest.yaml, then
    deployment-manifest.yml. Every violation is reported, not only the first.

    \b
    Examples:
        deploycfg validate                            # Validate the manifest in the current directory
        deploycfg validate deployment-manifest.yaml   # Validate a specific file
        deploycfg validate --json-output              # Output results in JSON format
    """
    configure_logging(debug)

    try:
        manifest_path = manifest or find_manifest_file()
        if manifest_path is None:
            if json_output:
                output_result({"manifest": None, "valid": True}, json_output)
            else:
                click.echo(click.style("ℹ️  No deployment manifest found, nothing to validate", fg="blue"))
            return

        validated = validate_manifest(read_manifest(manifest_path), source=manifest_path)

        if json_output:
            output_result({"manifest": str(manifest_path), "valid": True}, json_output)
        else:
            click.echo(_format_validation_result(manifest_path, validated))

    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
