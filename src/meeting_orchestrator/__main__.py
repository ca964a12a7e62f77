"""CLI entry point for Meeting Orchestrator application."""

import argparse
import sys

from .agents.calendar import describe_event_time
from .config import TenantConfig, config
from .models.meeting import LocationType, MeetingLocation, MeetingTime, Organizer, Participant
from .orchestrator.factory import create_orchestrator
from .orchestrator.result import status_code_for, summarize_availability, summarize_meeting
from .orchestrator.schemas import AvailabilityRequest, DatePreference, ScheduleMeetingRequest
from .utils.exceptions import OrchestratorError
from .utils.logging import setup_logging


def _build_location(args) -> MeetingLocation:
    location_type = LocationType(args.location_type)
    return MeetingLocation(
        type=location_type,
        provider="google_meet" if location_type == LocationType.VIDEO else None,
        physical_address=args.address,
        dial_in=args.dial_in,
    )


def _local_part(email: str) -> str:
    return email.split("@")[0]


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Meeting Orchestrator - Schedule meetings across connected calendars"
    )
    parser.add_argument(
        "--company",
        type=str,
        required=True,
        help="Company ID from the tenant configuration",
    )
    parser.add_argument(
        "--availability",
        action="store_true",
        help="List slots where organizer and participants are all free",
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Schedule a meeting (at --start/--end, or the first free slot if --duration is set)",
    )
    parser.add_argument(
        "--directory",
        action="store_true",
        help="List the company contact directory",
    )
    parser.add_argument(
        "--snapshot",
        type=str,
        default=None,
        metavar="DATE",
        help="Show each employee's events and utilization for a day (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--organizer",
        type=str,
        help="Organizer email",
    )
    parser.add_argument(
        "--participants",
        nargs="*",
        default=[],
        help="Participant emails",
    )
    parser.add_argument(
        "--subject",
        type=str,
        default="Meeting",
        help="Meeting subject",
    )
    parser.add_argument(
        "--start",
        type=str,
        help="Start time, or search window start (ISO 8601)",
    )
    parser.add_argument(
        "--end",
        type=str,
        help="End time, or search window end (ISO 8601)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=None,
        help="Meeting length in minutes",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default="UTC",
        help="Timezone for display (default: UTC)",
    )
    parser.add_argument(
        "--location-type",
        choices=[t.value for t in LocationType],
        default=LocationType.VIDEO.value,
        help="Meeting location type (default: video)",
    )
    parser.add_argument(
        "--address",
        type=str,
        help="Street address for physical meetings",
    )
    parser.add_argument(
        "--dial-in",
        type=str,
        help="Dial-in number for phone meetings",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    # Setup logging
    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        tenant_config = TenantConfig(config.tenant_config_path)
        if not tenant_config.has_config:
            logger.error(f"No companies configured in {config.tenant_config_path}")
            return 1
        if tenant_config.get_company(args.company) is None:
            logger.error(f"Unknown company: {args.company}")
            return 1

        orchestrator = create_orchestrator(config, tenant_config)

        if args.directory:
            directory = orchestrator.contacts.get_company_directory(args.company)
            print(f"Found {len(directory)} contact(s):")
            for email, contact in sorted(directory.items()):
                print(f"  - {contact.full_name or email} <{email}>")
                if contact.company_name:
                    print(f"    Company: {contact.company_name}")
                if contact.primary_phone:
                    print(f"    Phone: {contact.primary_phone}")
            return 0

        if args.snapshot:
            snapshot = orchestrator.calendar.get_company_schedule_snapshot(
                args.company, args.snapshot, args.timezone
            )
            print(f"\nSchedule for {snapshot.date} ({snapshot.company_utilization}% utilization)")
            for employee in snapshot.employees:
                print(f"\n=== {employee.email} ({employee.utilization}%) ===")
                for event in employee.events:
                    print(f"  - {event.title}")
                    print(f"    When: {describe_event_time(event)}")
            return 0

        if args.availability or args.schedule:
            if not args.organizer:
                logger.error("--organizer is required")
                return 1
            if not args.start or not args.end:
                logger.error("--start and --end are required")
                return 1

        if args.availability:
            if not args.duration:
                logger.error("--duration is required with --availability")
                return 1
            slots = orchestrator.calendar.check_availability_for_users(
                args.company,
                [args.organizer] + args.participants,
                args.duration,
                args.start,
                args.end,
                args.timezone,
            )
            print(f"Found {len(slots)} slot(s):")
            for slot in slots:
                print(f"  - {slot.start} to {slot.end}")
            return 0

        if args.schedule:
            organizer = Organizer(name=_local_part(args.organizer), email=args.organizer)
            location = _build_location(args)

            if args.duration:
                result = orchestrator.find_availability_and_schedule_safe(
                    AvailabilityRequest(
                        company_id=args.company,
                        organizer=organizer,
                        participant_emails=args.participants,
                        duration_minutes=args.duration,
                        date_preferences=[DatePreference(start=args.start, end=args.end)],
                        timezone=args.timezone,
                        subject=args.subject,
                        location=location,
                    )
                )
                summarize = summarize_availability
            else:
                result = orchestrator.schedule_meeting_safe(
                    ScheduleMeetingRequest(
                        company_id=args.company,
                        organizer=organizer,
                        participants=[
                            Participant(name=_local_part(e), email=e) for e in args.participants
                        ],
                        subject=args.subject,
                        time=MeetingTime(start=args.start, end=args.end, timezone=args.timezone),
                        location=location,
                    )
                )
                summarize = summarize_meeting

            if not result.ok:
                logger.error(
                    f"Scheduling failed (HTTP {status_code_for(result.error)}): {result.message}"
                )
                return 1
            print(summarize(result.value))
            return 0

        parser.print_help()
        return 0

    except OrchestratorError as e:
        logger.error(f"Meeting orchestrator error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
