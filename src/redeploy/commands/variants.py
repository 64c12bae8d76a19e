"""List supported container variants."""
from redeploy.deploy.variants import list_variants


def setup_parser(parser):
    """Setup argument parser for variants command"""
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show variant options'
    )


def execute(args):
    """Print one line per variant"""
    variants = list_variants()
    print(f"Supported container variants ({len(variants)}):")
    for variant in variants:
        line = f"  {variant.variant_id:<12} {variant.product}"
        if args.verbose and variant.options:
            opts = ", ".join(f"{k}={v}" for k, v in variant.options.items())
            line += f"  [{opts}]"
        print(line)
    return 0
