from __future__ import annotations

from typing import List

from ..config import Settings
from ..model import Step
from .docker import console_step, php_step


def phpunit(settings: Settings, suite: str | None = None, warmup: bool = True) -> List[Step]:
    """
    PHPUnit steps. With `warmup`, the test-env cache is built first so the
    first test doesn't pay for container compilation.
    """
    out: List[Step] = []
    if warmup:
        out.append(console_step(settings, "Warm up test cache", "cache:warmup", env="test"))

    args = ["bin/phpunit", "--no-coverage"]
    if suite:
        args += ["--testsuite", suite]
    out.append(php_step(settings, f"PHPUnit ({suite})" if suite else "PHPUnit", *args))
    return out


def coverage(settings: Settings) -> List[Step]:
    return [
        php_step(
            settings,
            "PHPUnit coverage",
            "-dpcov.enabled=1",
            "bin/phpunit",
            "--coverage-html", ".build/coverage",
            "--coverage-clover", ".build/clover.xml",
        )
    ]
