import argparse
from decimal import Decimal

import pytest

from yield_router.__main__ import _decimal, build_parser


def test_defaults_to_run():
    args = build_parser().parse_args([])
    assert args.command == "run"
    assert args.env == "development"
    assert args.principal == Decimal("1000")
    assert args.execute is False


def test_routes_arguments():
    args = build_parser().parse_args(
        ["routes", "--chain", "base", "--profile", "conservative", "--principal", "2500", "--held-protocol", "aave-base"]
    )
    assert args.command == "routes"
    assert args.chain == "base"
    assert args.profile == "conservative"
    assert args.principal == Decimal("2500")
    assert args.held_protocol == "aave-base"


def test_rejects_unknown_profile():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["routes", "--profile", "yolo"])


def test_decimal_type():
    assert _decimal("0.05") == Decimal("0.05")
    with pytest.raises(argparse.ArgumentTypeError):
        _decimal("five")
