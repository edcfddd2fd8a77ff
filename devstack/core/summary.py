"""
Final summary: endpoints, credentials and handy commands.
"""
from devstack.core.config import Settings
from devstack.core.reporter import Reporter
from devstack.schemas import Credentials, InstallMode, ServiceEndpoint

USEFUL_COMMANDS = [
    ("View logs", "logs -f"),
    ("Stop services", "down"),
    ("Restart services", "restart"),
    ("Enter PHP", "exec php sh"),
    ("Enter Node", "exec node sh"),
    ("Run migrations", "exec php php artisan migrate"),
    ("Clear cache", "exec php php artisan cache:clear"),
]


def application_endpoints(settings: Settings, mode: InstallMode) -> list[ServiceEndpoint]:
    endpoints = [
        ServiceEndpoint(label="Backend API", address=f"http://localhost:{settings.api_port}/api"),
        ServiceEndpoint(label="Laravel Welcome", address=f"http://localhost:{settings.api_port}"),
    ]
    if mode == InstallMode.FULL:
        endpoints.append(
            ServiceEndpoint(label="Frontend (Dev)", address=f"http://localhost:{settings.frontend_port}")
        )
    return endpoints


def tool_endpoints(settings: Settings) -> list[ServiceEndpoint]:
    return [
        ServiceEndpoint(label="pgAdmin", address=f"http://localhost:{settings.pgadmin_port}"),
        ServiceEndpoint(label="Kibana", address=f"http://localhost:{settings.kibana_port}"),
        ServiceEndpoint(label="PostgreSQL", address=f"localhost:{settings.database_port}"),
        ServiceEndpoint(label="Elasticsearch", address=f"http://localhost:{settings.elasticsearch_port}"),
        ServiceEndpoint(label="Redis", address=f"localhost:{settings.redis_port}"),
    ]


def _print_endpoints(reporter: Reporter, endpoints: list[ServiceEndpoint]) -> None:
    for endpoint in endpoints:
        reporter.line(f"  - {endpoint.label + ':':<18}{endpoint.address}")


def print_summary(
    reporter: Reporter,
    settings: Settings,
    mode: InstallMode,
    credentials: Credentials,
) -> None:
    reporter.line()
    reporter.banner("Setup Complete!")

    if mode == InstallMode.API:
        reporter.heading("API-only mode - Backend services:")
    else:
        reporter.heading("Full-stack mode - All services:")
    _print_endpoints(reporter, application_endpoints(settings, mode))

    reporter.line()
    reporter.heading("Database & Tools:")
    _print_endpoints(reporter, tool_endpoints(settings))

    reporter.line()
    reporter.heading("Credentials:")
    reporter.line(f"  - {'Database:':<18}{credentials.db_username} / {credentials.db_password}")
    reporter.line(f"  - {'pgAdmin:':<18}{credentials.admin_email} / {credentials.admin_password}")
    if credentials.is_default:
        reporter.warning("  Development defaults in use; unset DEVSTACK_USE_DEFAULT_CREDENTIALS to generate unique secrets.")
    else:
        reporter.line(f"  (stored in {settings.state_dir}/credentials.json)")

    reporter.line()
    reporter.heading("Useful Commands:")
    compose = " ".join(settings.compose_command)
    for label, args in USEFUL_COMMANDS:
        reporter.line(f"  - {label + ':':<18}{compose} {args}")
    reporter.line()

    if mode == InstallMode.FULL:
        reporter.warning(
            f"Note: Frontend will be available at http://localhost:{settings.frontend_port} "
            f"once the {settings.frontend_service} container starts"
        )
