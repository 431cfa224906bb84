"""Task completion workflow.

Business logic applied when a recurring task is completed or one of its
dates is skipped:
- Advancing the due date by one recurrence step
- Rotating responsibility to the next eligible member
- Moving the rotation schedule on to its next occurrence
- Maintaining the list of skipped dates

Like the rotation service, every operation returns a new TaskState.
"""

import copy
import logging
from typing import Iterable, List, Optional, Tuple

from config import Config
from models import Schedule, TaskState
from services.rotation_service import eligible_members
from utils.recurrence import next_due_date
from utils.schedule import shift_schedule

logger = logging.getLogger(__name__)


def next_assignee(current: Optional[int], eligible: List[int]) -> Optional[int]:
    """Member that follows current in rotation order.

    If current isn't eligible (e.g. excluded after being assigned), the
    rotation restarts at the first eligible member.

    Returns:
        Member ID, or None when nobody is eligible
    """
    if not eligible:
        return None
    if current not in eligible:
        return eligible[0]
    return eligible[(eligible.index(current) + 1) % len(eligible)]


class CompletionService:
    """Service for completing and skipping occurrences of recurring tasks."""

    @staticmethod
    def complete(task: TaskState, roster: List[int],
                 excluded: Optional[Iterable[int]] = None) -> TaskState:
        """Complete the current occurrence of a task.

        Args:
            task: Task state before completion
            roster: Active household member IDs in rotation order
            excluded: Member IDs excluded from this task's rotation

        Returns:
            Task state for the next occurrence
        """
        result = copy.deepcopy(task)

        following = next_due_date(task.recurrence, task.due_date)
        if following is not None:
            result.due_date = following

        if task.enable_rotation and task.assigned_to:
            eligible = eligible_members(roster, excluded)
            if eligible:
                rotated = [next_assignee(member_id, eligible) for member_id in task.assigned_to]
                # Keep each member once; two assignees may rotate onto the same person
                result.assigned_to = list(dict.fromkeys(rotated))
                logger.info(f"Rotated assignees {task.assigned_to} -> {result.assigned_to}")
            else:
                logger.warning("No eligible members for rotation, keeping assignees")

        logger.info(f"Completed occurrence due {task.due_date}, next due {result.due_date}")
        return result

    @staticmethod
    def complete_with_schedule(task: TaskState, schedule: Schedule, roster: List[int],
                               excluded: Optional[Iterable[int]] = None,
                               special_start: int = Config.SPECIAL_OCCURRENCE_START
                               ) -> Tuple[TaskState, Schedule]:
        """Complete a task that has a rotation schedule.

        The first occurrence leaves the schedule and the rest move up. The
        members planned for the new first occurrence become the assignees;
        if nobody is planned there, the task rotates as in complete().

        Returns:
            (task state for the next occurrence, shifted schedule)
        """
        result = CompletionService.complete(task, roster, excluded)
        shifted = shift_schedule(copy.deepcopy(schedule), special_start)

        if shifted and shifted[0].assigned_member_ids():
            result.assigned_to = shifted[0].assigned_member_ids()
            logger.info(f"Assignees taken from schedule: {result.assigned_to}")

        return result, shifted

    @staticmethod
    def skip_date(task: TaskState, iso_date: str) -> TaskState:
        """Mark one date of a recurring task as skipped."""
        result = copy.deepcopy(task)
        if iso_date not in result.skipped_dates:
            result.skipped_dates = sorted(result.skipped_dates + [iso_date])
            logger.info(f"Skipped date {iso_date}")
        return result

    @staticmethod
    def restore_date(task: TaskState, iso_date: str) -> TaskState:
        """Undo a skipped date."""
        result = copy.deepcopy(task)
        if iso_date in result.skipped_dates:
            result.skipped_dates = [d for d in result.skipped_dates if d != iso_date]
            logger.info(f"Restored skipped date {iso_date}")
        return result
