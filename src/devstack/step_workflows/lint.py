# step_workflows/lint.py
# Linter and static-analysis steps. Each tool runs inside its service
# container; only the invocation matters here.
from __future__ import annotations

from ..config import Settings
from ..model import Step
from .docker import php_step, yarn_step


def php_cs_fixer(settings: Settings) -> Step:
    return php_step(settings, "PHP CS Fixer", "vendor/bin/php-cs-fixer", "fix", "-v")


def phpcbf(settings: Settings) -> Step:
    return php_step(settings, "PHPCBF", "vendor/bin/phpcbf", "-p", "--standard=phpcs.xml.dist")


def phpcs(settings: Settings) -> Step:
    return php_step(settings, "PHPCS", "vendor/bin/phpcs", "-p", "--standard=phpcs.xml.dist")


def phpstan(settings: Settings) -> Step:
    return php_step(settings, "PHPStan", "vendor/bin/phpstan", "analyse", "-c", "phpstan.neon")


def psalm(settings: Settings) -> Step:
    return php_step(settings, "Psalm", "vendor/bin/psalm", "-c", "psalm.xml")


def rector(settings: Settings) -> Step:
    return php_step(settings, "Rector", "vendor/bin/rector")


def eslint(settings: Settings) -> Step:
    return yarn_step(settings, "ESLint", "lint")
