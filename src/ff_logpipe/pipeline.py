"""
Pipeline construction: Options in, CoreTee out.
"""

import logging

from .config import Options
from .core import CoreTee, build_core, build_tee
from .fields import merge
from .levels import Level
from .rotation import DEFAULT_OUTPUT_RULE, resolve

logger = logging.getLogger(__name__)

ERROR_SUFFIX = "_error"


def build_logger_tee(name: str, options: Options, *, stdout_only: bool = False) -> CoreTee:
    """
    Build the write pipeline for one logger.

    The main core takes everything at or above the options' level. When an
    error rule is configured, a second core mirrors error-and-above records to
    ``<name>_error.log``. In local mode both cores also echo to stdout.

    Args:
        name: Registry name; default file name
        options: Logger options
        stdout_only: Skip file sinks entirely (unusable log directory)

    Returns:
        The composed tee
    """
    level = options.level
    development = options.mode.development
    context = merge(options.context_fields())
    file_name = options.file_name(name)

    if stdout_only:
        main = build_core([], level, options.encoder, stdout=True, context=context, name=name)
        return build_tee(main)

    output_rule = (options.output_rule or DEFAULT_OUTPUT_RULE).resolved(
        directory=options.base_directory, filename=file_name
    )
    main = build_core(
        [resolve(output_rule)],
        level,
        options.encoder,
        stdout=development,
        context=context,
        name=name,
    )

    errors = None
    if options.error_rule is not None:
        error_rule = options.error_rule.resolved(
            directory=options.base_directory, filename=file_name + ERROR_SUFFIX
        )
        if not str(error_rule.directory):
            logger.warning("Error log directory for %r is empty, not mirroring errors", name)
        else:
            errors = build_core(
                [resolve(error_rule)],
                max(level, Level.ERROR),
                options.encoder,
                stdout=development,
                context=context,
                name=name + ERROR_SUFFIX,
            )

    return build_tee(main, errors)
