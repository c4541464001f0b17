from typing import Optional

import click
import pydantic

from depconfusion.report import OutputTarget, format_scores, write_outputs
from depconfusion.scorer import ScoringError, ScoringOptions, score_files
from depconfusion.utils import setup_logging


def destination_opt(target: OutputTarget, help: str):
    return click.option(
        f"--{target.value.replace('_', '-')}",
        target.value,
        type=click.Path(allow_dash=True),
        help=help,
    )


@click.command(help="Score a predicted dependency treebank against a gold one.")
@click.argument(
    "validation_path",
    metavar="VALIDATION",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
@click.argument(
    "prediction_path",
    metavar="PREDICTION",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True),
)
@destination_opt(OutputTarget.DEPREL_CONFUSION, "Write the deprel confusion matrix to this file.")
@destination_opt(OutputTarget.DEPREL_ACCURACIES, "Write the per-deprel accuracies to this file.")
@destination_opt(
    OutputTarget.DISTANCE_CONFUSION, "Write the head distance confusion matrix to this file."
)
@destination_opt(
    OutputTarget.DISTANCE_ACCURACIES, "Write the per-head distance accuracies to this file."
)
@destination_opt(
    OutputTarget.FIELD_CONFUSION, "Write the topological field confusion matrix to this file."
)
@destination_opt(
    OutputTarget.FIELD_ACCURACIES, "Write the per-topological field accuracies to this file."
)
@click.option(
    "--separator",
    help="Write confusion matrices as raw counts separated by this string instead of a table.",
)
@click.option(
    "--fields",
    "score_fields",
    is_flag=True,
    help="Also evaluate topological fields, read from the token features.",
)
@click.option(
    "--field-feature",
    default="p_tf",
    show_default=True,
    help="The feature holding the predicted topological field in the prediction file.",
)
@click.option("--no-rels", is_flag=True, help="Don't evaluate heads and relations.")
@click.option("--clause-ids", is_flag=True, help="Use clause ids to derive rel predictions.")
@click.option("--verbose", is_flag=True, help="How much info should we dump to the console")
@click.pass_context
def cli(
    ctx: click.Context,
    clause_ids: bool,
    field_feature: str,
    no_rels: bool,
    prediction_path: str,
    score_fields: bool,
    separator: Optional[str],
    validation_path: str,
    verbose: bool,
    **destinations: Optional[str],
):
    setup_logging(verbose=verbose)
    if validation_path == "-" and prediction_path == "-":
        raise click.UsageError(
            "VALIDATION and PREDICTION can't both be read from stdin", ctx=ctx
        )
    try:
        options = ScoringOptions(
            score_relations=not no_rels,
            score_fields=score_fields,
            pred_field_feature=field_feature,
            clause_ids=clause_ids,
        )
    except pydantic.ValidationError as e:
        raise click.UsageError("--no-rels requires --fields", ctx=ctx) from e

    try:
        result = score_files(validation_path, prediction_path, options)
    except ScoringError as e:
        raise click.ClickException(str(e)) from e

    for line in format_scores(result):
        click.echo(line)

    requested = {
        OutputTarget(name): path for name, path in destinations.items() if path is not None
    }
    if failures := write_outputs(result, requested, separator=separator):
        for failure in failures:
            click.echo(f"Error: {failure}", err=True)
        ctx.exit(1)


if __name__ == "__main__":
    cli()
