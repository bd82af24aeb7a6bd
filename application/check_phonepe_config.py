#!/usr/bin/env python3
"""
Print the PhonePe configuration this environment would run with.
Salt values are masked. Exits with status 1 when merchant credentials are missing.
"""
import sys

from coursepay.config.phonepe import describe_phonepe_configuration


def main() -> int:
    configured, lines = describe_phonepe_configuration()
    print("\n".join(lines))
    return 0 if configured else 1


if __name__ == "__main__":
    sys.exit(main())
