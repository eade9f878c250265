import argparse, json, logging, sys

import pandas as pd

from patterns.frames import from_frame, to_frame
from patterns.types import PatternError
from .config import ScanConfig
from .scanner import PatternScanner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Chart Pattern Scanner CLI')
    parser.add_argument('--input', required=True, help='CSV file with the raw price series')
    parser.add_argument('--time-column', default='time', help='Numeric or date column (default: time)')
    parser.add_argument('--price-column', default='price', help='Price column (default: price)')
    parser.add_argument('--pivot-column', default=None,
                        help='Boolean column flagging pivots; local extrema are used when omitted')
    parser.add_argument('--output', default=None, help='Write one row per pattern to this CSV file')
    parser.add_argument('--skip-overlapping', action='store_true',
                        help='Do not start a new pattern inside a matched one')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        df = pd.read_csv(args.input, parse_dates=False)
        if args.time_column in df.columns and not pd.api.types.is_numeric_dtype(df[args.time_column]):
            df[args.time_column] = pd.to_datetime(df[args.time_column])
        pivot_index, times, prices = from_frame(
            df,
            time_column=args.time_column,
            price_column=args.price_column,
            pivot_column=args.pivot_column
        )
        scanner = PatternScanner(ScanConfig(skip_overlapping=args.skip_overlapping))
        result = scanner.scan(pivot_index, times, prices)
    except (OSError, PatternError, ValueError) as e:
        print(json.dumps({"ok": False, "error": str(e)}, indent=2))
        return 1

    output = {"ok": True, **result.summary()}
    if args.output:
        to_frame(result).to_csv(args.output)
        output["output"] = args.output

    print(json.dumps(output, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
