# tasks.py
# Built-in operation table for the api (php) + pwa + traefik stack.
# Declaration order is the order `devstack list` prints.
from __future__ import annotations

import logging
from typing import List

from .config import ENV_FILE, ENV_TEMPLATE_SUFFIX, Settings, bootstrap_env_file
from .dsl import op, registry, run_steps, sh
from .model import ActionContext, Operation
from .step_workflows import certs, lint
from .step_workflows.docker import compose_step, composer_step, console_step, yarn_step
from .step_workflows.test import coverage, phpunit

log = logging.getLogger(__name__)

INIT_CHAIN = [
    "bootstrap-env",
    "build-images",
    "start-containers",
    "distribute-routing-config",
    "install-deps",
    "load-fixtures",
    "run-tests",
]


def bootstrap_env_action(ctx: ActionContext) -> None:
    created = bootstrap_env_file(ctx.path(ENV_FILE), ctx.path(ENV_FILE + ENV_TEMPLATE_SUFFIX))
    log.debug("%s %s", ENV_FILE, "created" if created else "kept")


def warmup_dev_action(ctx: ActionContext) -> None:
    # Static analysers need the compiled dev container; build it only once.
    if ctx.path(ctx.settings.dev_cache_marker).exists():
        log.debug("dev cache present, skipping warmup")
        return
    run_steps(ctx, [console_step(ctx.settings, "Warm up dev cache", "cache:warmup")])


def operations(settings: Settings) -> List[Operation]:
    s = settings
    return registry(
        # ---- Project ----
        op("init", needs=INIT_CHAIN, description="Initialize the project"),
        op("start", needs=["start-containers"], description="Start the project"),
        op("stop", needs=["stop-containers"], description="Stop the project"),
        op("restart", needs=["stop-containers", "start-containers"], description="Restart the project"),
        op(
            "bootstrap-env",
            action=bootstrap_env_action,
            description=f"Create {ENV_FILE} from {ENV_FILE}{ENV_TEMPLATE_SUFFIX} if it does not exist",
        ),

        # ---- Docker ----
        op(
            "build-images",
            compose_step(s, "Build images", "build", "--pull", "--no-cache"),
            needs=["bootstrap-env"],
            description="Build the Docker images (no cache)",
        ),
        op(
            "build-images-cached",
            compose_step(s, "Build images", "build", "--pull"),
            needs=["bootstrap-env"],
            description="Build the Docker images",
        ),
        op(
            "start-containers",
            compose_step(s, "Start containers", "up", "--detach"),
            needs=["bootstrap-env"],
            description="Start the containers in detached mode",
        ),
        op(
            "stop-containers",
            compose_step(s, "Stop containers", "down", "--remove-orphans"),
            description="Stop the containers",
        ),
        op(
            "logs",
            compose_step(s, "Follow logs", "logs", "--tail=0", "--follow"),
            description="Show live logs",
        ),

        # ---- TLS gateway ----
        op(
            "generate-certificate",
            action=certs.generate_action,
            description=f"Generate the TLS key/certificate for {', '.join(s.tls_hostnames) or '(no hosts)'}",
        ),
        op(
            "distribute-key",
            action=certs.distribute_key_action,
            needs=["generate-certificate", "start-containers"],
            description=f"Copy the TLS key into {s.proxy_container}",
        ),
        op(
            "distribute-cert",
            action=certs.distribute_cert_action,
            needs=["distribute-key"],
            description=f"Copy the TLS certificate into {s.proxy_container}",
        ),
        op(
            "distribute-routing-config",
            action=certs.distribute_routing_action,
            needs=["distribute-cert"],
            description=f"Copy the routing config into {s.proxy_container}",
        ),
        op(
            "provision-certificate",
            needs=["distribute-routing-config"],
            description="Generate and install the gateway certificate",
        ),

        # ---- Composer ----
        op(
            "install-deps",
            composer_step(s, "Composer install", "-n", "install", "--prefer-dist"),
            needs=["start-containers"],
            description="Install vendors according to the current composer.lock file",
        ),
        op(
            "install-deps-no-scripts",
            composer_step(s, "Composer install", "-n", "install", "--prefer-dist", "--no-scripts"),
            needs=["start-containers"],
            description="Install vendors without running composer scripts",
        ),
        op(
            "vendor",
            composer_step(
                s, "Composer install (prod)",
                "install", "--prefer-dist", "--no-dev", "--no-progress", "--no-scripts", "--no-interaction",
            ),
            needs=["start-containers"],
            description="Install production vendors only",
        ),

        # ---- Console ----
        op("cache-clear", console_step(s, "Clear cache", "cache:clear"), description="Clear cache"),
        op("cache-warmup", console_step(s, "Warm up cache", "cache:warmup"), description="Warm up the cache"),
        op(
            "generate-jwt-keypair",
            console_step(s, "Generate JWT keypair", "lexik:jwt:generate-keypair", "--overwrite", "--no-interaction"),
            description="Generate the JWT keypair",
        ),
        op(
            "consume-stop",
            console_step(s, "Stop workers", "messenger:stop-workers"),
            description="Stop all consumers",
        ),

        # ---- PWA ----
        op("pwa-install", yarn_step(s, "Yarn install", "install"), description="Install PWA dependencies"),
        op("pwa-build", yarn_step(s, "Yarn build", "build"), description="Build the PWA"),
        op("pwa-dev", yarn_step(s, "Yarn dev", "dev"), description="Run the PWA dev server"),
        op("eslint", lint.eslint(s), description="Launch ESLint"),

        # ---- Fixtures ----
        op(
            "load-fixtures",
            console_step(s, "Load fixtures", "doctrine:fixtures:load", "-n"),
            needs=["start-containers"],
            description="Load fixtures for dev",
        ),
        op(
            "fixtures-test",
            console_step(s, "Load fixtures", "doctrine:fixtures:load", "-n", env="test"),
            needs=["start-containers"],
            description="Load fixtures for test",
        ),

        # ---- Test ----
        op("run-tests", *phpunit(s), needs=["start-containers"], description="Launch all tests"),
        op("test-unit", *phpunit(s, suite="UnitTest", warmup=False), description="Launch unit tests"),
        op("coverage", *coverage(s), needs=["fixtures-test"], description="Launch all tests with coverage"),

        # ---- Code style ----
        op("php-cs-fixer", lint.php_cs_fixer(s), description="Launch PHP CS Fixer"),
        op("phpcbf", lint.phpcbf(s), description="Launch PHPCBF"),
        op("phpcs", lint.phpcs(s), description="Launch PHPCS"),
        op("cs", needs=["php-cs-fixer", "phpcbf", "eslint"], description="Launch all linters"),

        # ---- Static analysis ----
        op(
            "warmup-dev",
            action=warmup_dev_action,
            description="Ensure the dev cache is built for static analysis",
        ),
        op("phpstan", lint.phpstan(s), needs=["warmup-dev"], description="Launch PHPStan"),
        op("psalm", lint.psalm(s), needs=["warmup-dev"], description="Launch Psalm"),
        op("sa", needs=["phpstan", "psalm"], description="Launch all quality tools"),
        op("rector", lint.rector(s), description="Launch Rector"),

        # ---- Util ----
        op("git-update", sh("Fetch", "git", "fetch"), sh("Pull", "git", "pull"), description="Update Git only"),
        op(
            "check",
            needs=["php-cs-fixer", "phpcs", "phpstan", "eslint", "run-tests"],
            description="Launch all linters and static analysis tools",
        ),
    )
