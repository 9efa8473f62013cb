"""Command-line interface for torfields.

Usage:
    torfields verify config.json
    torfields mesh config.json
    torfields subcycle config.json
    torfields presets
"""

from __future__ import annotations

import logging
import sys

import click


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """torfields: toroidal plasma field evaluation and SC-E solver."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def verify(config_file: str) -> None:
    """Verify a configuration file is valid."""
    from torfields.config import FieldsConfig

    try:
        config = FieldsConfig.from_file(config_file)
        eq = config.equilibrium
        click.echo("Configuration is valid:")
        click.echo(f"  Field model: {config.field_model.value}")
        click.echo(f"  B0: {eq.B0:.3f} T, R0: {eq.major_radius:.3f} m, a: {eq.minor_radius:.3f} m")
        click.echo(f"  q: {eq.qo:.2f} (axis) -> {eq.qa:.2f} (edge), lambda={eq.lam:.4f} m")
        click.echo(f"  E0: {eq.E0:.3e} V/m, pulse: {'on' if config.pulse.enabled else 'off'}")
        if config.sc.enabled:
            click.echo(
                f"  SC-E: {config.sc.geometry}, {config.sc.dim_1D} points, "
                f"{config.sc.deposition_policy} deposition, Ip_exp={config.sc.Ip_exp:.3e} A"
            )
    except Exception as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def mesh(config_file: str) -> None:
    """Build the configured analytic mesh and report field statistics."""
    import numpy as np

    from torfields.config import FieldsConfig, MeshConfig
    from torfields.errors import FatalFieldError, abort_on_fatal
    from torfields.mesh.auxiliary import compute_gc_fields
    from torfields.mesh.builder import build_analytic_mesh
    from torfields.sc.comm import default_communicator

    config = FieldsConfig.from_file(config_file)
    mesh_cfg = config.mesh if config.mesh is not None else MeshConfig()
    if mesh_cfg.source != "analytic":
        click.echo("Only analytic meshes can be built from the command line", err=True)
        sys.exit(1)

    with abort_on_fatal(default_communicator()):
        try:
            fields = build_analytic_mesh(config.equilibrium, mesh_cfg)
            compute_gc_fields(fields)
        except FatalFieldError as exc:
            click.echo(f"Mesh error: {exc}", err=True)
            raise

    Bmag = np.sqrt(np.sum(fields.B**2, axis=0))
    click.echo(f"Mesh shape: {fields.shape}")
    click.echo(f"  mean |B|: {float(np.mean(Bmag)):.6e} T")
    if fields.E is not None:
        Emag = np.sqrt(np.sum(fields.E**2, axis=0))
        click.echo(f"  mean |E|: {float(np.mean(Emag)):.6e} V/m")
    click.echo(f"  max |grad B|: {float(np.max(np.abs(fields.gradB))):.6e} T/m")
    click.echo(f"  max |curl b|: {float(np.max(np.abs(fields.curlb))):.6e} 1/m")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def subcycle(config_file: str) -> None:
    """Show the SC-E subcycling derived from the configured timesteps."""
    from torfields.config import FieldsConfig
    from torfields.errors import FatalFieldError, abort_on_fatal
    from torfields.sc.comm import default_communicator
    from torfields.sc.solver import define_subcycle

    config = FieldsConfig.from_file(config_file)
    with abort_on_fatal(default_communicator()):
        try:
            schedule = define_subcycle(config.sc.dt_E_SC, config.time.dt, config.time.t_skip)
        except FatalFieldError as exc:
            click.echo(f"Subcycle error: {exc}", err=True)
            raise

    click.echo(f"Subcycle iterations: {schedule.subcycle}")
    click.echo(f"Effective dt_E: {schedule.dt_E:.6e} s")
    click.echo(f"Output interval (t_skip): {schedule.t_skip}")
    if schedule.outputs_per_cycle > 0:
        n_out = config.time.t_steps // (schedule.t_skip * schedule.outputs_per_cycle)
        click.echo(f"Updated number of outputs: {n_out}")


@cli.command()
def presets() -> None:
    """List the named configuration presets."""
    from torfields.presets import list_presets

    for info in list_presets():
        click.echo(f"  {info['name']:<10} [{info['field_model']}] {info['description']}")


if __name__ == "__main__":
    cli()
