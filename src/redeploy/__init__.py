"""
redeploy - Remote, retrying WAR/EAR deployment to running application containers

Deploys an artifact from the machine where it lives, builds the container
configuration from build environment variables, and retries while the
container is restarting.
"""
import argparse
import logging
import sys

__version__ = "1.0.0"


def main():
    """Main CLI entry point"""
    from redeploy.commands import deploy, variants

    parser = argparse.ArgumentParser(
        prog='redeploy',
        description='redeploy: WAR/EAR deployment to running containers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  redeploy deploy app.war --variant tomcat9x --url http://tomcat:8080 \\
      --username deployer --password '${TOMCAT_PASSWORD}' --context /app
  redeploy deploy target/app.war --config tomcat.yaml --env BUILD=42
  redeploy deploy /builds/app.war --config tomcat.yaml --location ci@agent-3
  redeploy variants                 # Show supported containers
        '''
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Show driver and dispatch debug output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Deploy command
    deploy_parser = subparsers.add_parser('deploy', help='Deploy an artifact')
    deploy.setup_parser(deploy_parser)

    # Variants command
    variants_parser = subparsers.add_parser('variants', help='List container variants')
    variants.setup_parser(variants_parser)

    args = parser.parse_args()

    level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Dispatch to command handler
    try:
        if args.command == 'deploy':
            sys.exit(deploy.execute(args))
        elif args.command == 'variants':
            sys.exit(variants.execute(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
