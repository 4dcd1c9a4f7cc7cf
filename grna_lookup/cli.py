"""
Command-line interface for grna-lookup.
"""

import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import LookupConfig, write_config_template
from .errors import is_failure


@click.group()
@click.version_option(version=__version__)
def cli():
    """grna-lookup: find, annotate and rank guide RNAs in genomic regions."""
    pass


@cli.command()
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True), required=True,
              help='Configuration YAML file')
@click.option('--request', 'request_path', type=click.Path(exists=True),
              help='Request file (JSON or YAML); replaces the query options below')
@click.option('--organism', type=str, help='Organism (e.g. hg38)')
@click.option('--enzyme', type=str, default='cas9', help='Enzyme (default: cas9)')
@click.option('--region', '-r', 'regions', type=str, multiple=True,
              help='Region chr:start-end or name=chr:start-end (repeatable)')
@click.option('--mode', type=click.Choice(['standard', 'grna']), default='standard',
              help='Query type (default: standard)')
@click.option('--flanking', type=int, help='Query the flanks of each region (bp)')
@click.option('--topn', type=int, help='Keep the top N guides per region')
@click.option('--ordering', type=click.Choice(['num-off-targets', 'specificity', 'cutting-efficiency']),
              default='num-off-targets', help='Ranking key (default: num-off-targets)')
@click.option('--filter-annotated/--no-filter-annotated', default=False,
              help='Keep only guides cutting within an annotated feature')
@click.option('--output', '-o', type=click.Path(),
              help='Output file (.tsv or .json); JSON to stdout if omitted')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def query(config_path, request_path, organism, enzyme, regions, mode, flanking, topn,
          ordering, filter_annotated, output, verbose):
    """
    Look up guides for genomic regions or observed guide sequences.

    \b
    Example:
      grna-lookup query -c config.yaml --organism hg38 \\
          -r BRCA1=chr17:43044295-43125483 --topn 5 -o brca1.tsv

    \b
    Example (sequence search, sequence as region name):
      grna-lookup query -c config.yaml --organism hg38 --mode grna \\
          -r GCTGAAGCACTGCACGCCGT=chr1:1000-1100
    """
    from .io.output import result_to_dict, write_results_json, write_results_tsv
    from .io.request import load_request, parse_request
    from .pipeline import QueryProcessor

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = LookupConfig.from_yaml(Path(config_path))
    except ValueError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if request_path:
        request = load_request(Path(request_path))
    else:
        if not organism or not regions:
            click.echo("Error: --organism and at least one --region are required without --request", err=True)
            sys.exit(1)
        request = parse_request({
            'query_type': mode,
            'organism': organism,
            'enzyme': enzyme,
            'regions': list(regions),
            'flanking': flanking,
            'topn': topn,
            'ordering': ordering,
            'filter_annotated': filter_annotated,
        })

    if is_failure(request):
        click.echo(f"Error: {request}", err=True)
        sys.exit(1)

    try:
        processor = QueryProcessor(config)
    except (OSError, ValueError) as e:
        click.echo(f"Error loading annotations: {e}", err=True)
        sys.exit(1)

    outcome = processor.process(request)
    if is_failure(outcome):
        click.echo(f"Error: {outcome}", err=True)
        sys.exit(1)

    if output is None:
        click.echo(json.dumps(result_to_dict(outcome), indent=2))
    elif output.endswith('.json'):
        write_results_json(outcome, Path(output))
    else:
        write_results_tsv(outcome, Path(output))


@cli.command()
@click.option('--output', '-o', type=click.Path(), default='grna_lookup.yaml',
              help='Output config file path')
def init(output):
    """Generate a template configuration file."""
    write_config_template(Path(output))

    click.echo(f"Generated configuration template: {output}")
    click.echo("\nEdit this file and run:")
    click.echo(f"  grna-lookup query --config {output} --organism hg38 -r chr1:100-200")


@cli.command()
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True), required=True,
              help='Configuration YAML file')
def info(config_path):
    """List the configured guide databases and annotation tables."""
    try:
        config = LookupConfig.from_yaml(Path(config_path))
    except ValueError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Guide databases ({len(config.databases)}):")
    for organism, enzyme in config.databases:
        path = config.get_database_path(organism, enzyme)
        offset = config.get_database_offset(organism, enzyme)
        suffix = f" (offset {offset})" if offset else ""
        click.echo(f"  {organism}/{enzyme}: {path}{suffix}")

    click.echo(f"Annotations ({len(config.annotation_paths)}):")
    for organism, path in sorted(config.annotation_paths.items()):
        click.echo(f"  {organism}: {path}")

    click.echo(f"Max region size: {config.max_region_size:,} bp")
    click.echo(f"Cut offset: {config.cut_offset} bp")
    click.echo(f"Threads: {config.threads}")


if __name__ == '__main__':
    cli()
