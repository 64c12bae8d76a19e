"""Deploy command: push one WAR/EAR to a running container."""
import signal

from redeploy.core import (
    ConsoleLogger,
    RealFileSystemService,
    SystemEnvironmentProvider,
    SystemTimeProvider,
    YamlConfigLoader,
)
from redeploy.deploy import (
    DeploymentOrchestrator,
    DeploymentRequest,
    DispatcherFactory,
    RedeployError,
)
from redeploy.utils.config import (
    INHERIT_ENV_VAR,
    build_deploy_config,
    env_bool,
    load_deploy_config,
    parse_env_assignments,
)


def setup_parser(parser):
    """Setup argument parser for deploy command"""
    parser.add_argument(
        'artifact',
        help='Path to the .war or .ear file (on the machine given by --location)'
    )
    parser.add_argument(
        '--config', '-c',
        help='YAML file describing the container target'
    )
    parser.add_argument(
        '--variant',
        help='Container variant (e.g. tomcat9x); see "redeploy variants"'
    )
    parser.add_argument('--url', help='Container base URL (macros allowed)')
    parser.add_argument('--username', help='Manager username (macros allowed)')
    parser.add_argument('--password', help='Manager password (macros allowed)')
    parser.add_argument(
        '--manager-path',
        dest='manager_path',
        help='Manager application path (default depends on variant)'
    )
    parser.add_argument(
        '--toolkit',
        help='Driver toolkit (default: tomcat)'
    )
    parser.add_argument(
        '--context',
        help='Context path for WAR deployments (macros allowed)'
    )
    parser.add_argument(
        '--attempts',
        type=int,
        help='Maximum deployment attempts (default: 4)'
    )
    parser.add_argument(
        '--location',
        help='Where the artifact lives: local:// (default) or user@host[:port]'
    )
    parser.add_argument(
        '--env', '-e',
        action='append',
        metavar='KEY=VALUE',
        help='Build environment variable for macro expansion (repeatable)'
    )
    parser.add_argument(
        '--inherit-env',
        action='store_true',
        help=f'Seed the build environment from this process (also {INHERIT_ENV_VAR}=1)'
    )


def execute(args):
    """Execute deploy command.

    Returns:
        Exit code: 0 deployed or skipped, 1 failed or cancelled
    """
    logger = ConsoleLogger()
    filesystem = RealFileSystemService()
    env_provider = SystemEnvironmentProvider()
    time_provider = SystemTimeProvider()

    try:
        file_config = None
        if args.config:
            file_config = load_deploy_config(args.config, YamlConfigLoader(filesystem))

        process_env = env_provider.get_environ()
        inherit = args.inherit_env or env_bool(process_env.get(INHERIT_ENV_VAR))

        config = build_deploy_config(
            file_config,
            overrides={
                "variant": args.variant,
                "url": args.url,
                "username": args.username,
                "password": args.password,
                "manager_path": args.manager_path,
                "toolkit": args.toolkit,
                "context": args.context,
                "attempts": args.attempts,
                "location": args.location,
                "environment": parse_env_assignments(args.env),
            },
            base_environment=process_env if inherit else None,
        )

        dispatcher = DispatcherFactory.from_location(config.location, debug=getattr(args, 'debug', False))
        orchestrator = DeploymentOrchestrator(logger, dispatcher, time_provider)
        request = DeploymentRequest(
            artifact_path=args.artifact,
            context_path=config.context,
            max_attempts=config.attempts,
            environment=config.environment,
        )
    except (RedeployError, ValueError) as e:
        logger.error(str(e))
        return 1

    # Ctrl-C stops further retries, locally or on the remote host; the
    # attempt in flight completes.
    previous = signal.signal(signal.SIGINT, lambda signum, frame: orchestrator.cancel())
    try:
        orchestrator.deploy(config.target, request)
    except RedeployError as e:
        logger.error(str(e))
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)

    status = orchestrator.last_result.status
    if status == "deployed":
        print(f"\n✓ Deployed {args.artifact}")
        return 0
    if status == "skipped":
        print(f"\nNothing deployed: {args.artifact} not found")
        return 0
    print("\nDeployment cancelled before it succeeded")
    return 1
