"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Sequence

from .year_config import (
    DividendSurchargeConfig,
    ReliefCatalog,
    TaxBracket,
    YearConfiguration,
    available_years,
    load_catalog,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_brackets(brackets: Sequence[TaxBracket]) -> list[str]:
    errors: list[str] = []

    if not brackets:
        return [_format_scope("tax_brackets", "no brackets defined")]

    previous_upper: float | None = None
    previous_rate: float | None = None
    for index, bracket in enumerate(brackets):
        scope = f"tax_brackets[{index}]"
        if bracket.rate < 0 or bracket.rate > 1:
            errors.append(
                _format_scope(scope, f"rate {bracket.rate} must be between 0 and 1")
            )
        if previous_rate is not None and bracket.rate < previous_rate:
            errors.append(
                _format_scope(scope, "rates must not decrease as income rises")
            )
        previous_rate = bracket.rate

        upper = bracket.upper_bound
        is_last = index == len(brackets) - 1
        if upper is None and not is_last:
            errors.append(_format_scope(scope, "only the final bracket may be open"))
        if upper is not None and is_last:
            errors.append(_format_scope(scope, "final bracket must be open-ended"))
        if upper is not None:
            if previous_upper is not None and upper <= previous_upper:
                errors.append(
                    _format_scope(scope, "upper bounds must be strictly increasing")
                )
            previous_upper = upper

    return errors


def _validate_filing_deadline(config: YearConfiguration) -> list[str]:
    if config.filing_deadline.year <= config.year:
        return [
            _format_scope(
                "filing_deadline",
                f"{config.filing_deadline.isoformat()} must fall after assessment year "
                f"{config.year}",
            )
        ]
    return []


def _validate_surcharge(surcharge: DividendSurchargeConfig | None) -> list[str]:
    if surcharge is None:
        return []
    errors: list[str] = []
    if surcharge.rate < 0 or surcharge.rate > 1:
        errors.append(
            _format_scope("dividend_surcharge", "rate must be between 0 and 1")
        )
    if surcharge.threshold < 0:
        errors.append(
            _format_scope("dividend_surcharge", "threshold must be non-negative")
        )
    return errors


def _validate_catalog_against_year(
    config: YearConfiguration, catalog: ReliefCatalog
) -> list[str]:
    errors: list[str] = []
    declared_flags = set(config.features)

    for item in catalog.items:
        if item.requires and item.requires not in declared_flags:
            errors.append(
                _format_scope(
                    f"items.{item.id}",
                    f"feature flag '{item.requires}' is not declared",
                )
            )

    for category in catalog.categories:
        scope = f"categories.{category.id}"
        if category.requires and category.requires not in declared_flags:
            errors.append(
                _format_scope(scope, f"feature flag '{category.requires}' is not declared")
            )
        if not config.feature_enabled(category.requires):
            continue

        for item_id in category.items:
            parent = catalog.get_item(item_id).parent
            if parent != category.id:
                errors.append(
                    _format_scope(
                        scope,
                        f"item '{item_id}' belongs to '{parent}' in the catalog",
                    )
                )

        if category.derived_limit is None:
            if category.limit_key not in config.category_limits:
                errors.append(
                    _format_scope(scope, f"limit '{category.limit_key}' is not declared")
                )
            elif config.limit_for(category.limit_key) <= 0:
                errors.append(
                    _format_scope(scope, "category is enabled with a zero limit")
                )

        for pool in category.shared_pools:
            if config.limit_for(pool.limit) <= 0:
                errors.append(
                    _format_scope(
                        scope, f"shared pool limit '{pool.limit}' must be positive"
                    )
                )

    return errors


def validate_year_configuration(
    config: YearConfiguration, catalog: ReliefCatalog | None = None
) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_brackets(config.brackets))
    errors.extend(_validate_filing_deadline(config))
    errors.extend(_validate_surcharge(config.dividend_surcharge))

    if config.personal_relief < 0:
        errors.append(_format_scope("personal_relief", "must be non-negative"))

    if not (0 <= config.donations.income_cap_rate <= 1):
        errors.append(
            _format_scope("donations", "income cap rate must be between 0 and 1")
        )

    errors.extend(_validate_catalog_against_year(config, catalog or load_catalog()))

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Validate configured assessment years and report issues helpful to "
            "contributors."
        )
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
