from sudoku_api import db
from sudoku_api.errors import AuthorizationError, NotFoundError, ValidationError
from sudoku_api.models import Group, GroupMember, Player
from sudoku_api.validation import require_difficulty


def validate_contestants(challenger_id: int, challenged_id: int, group_id: int, difficulty: str) -> None:
    """Checks shared by challenges and live matches before either is created."""
    require_difficulty(difficulty)
    if challenger_id == challenged_id:
        raise ValidationError('You cannot challenge yourself')
    if not db.session.get(Group, group_id):
        raise NotFoundError('Group not found')
    if not db.session.get(Player, challenged_id):
        raise NotFoundError('Player not found')
    if not db.session.get(GroupMember, (group_id, challenger_id)):
        raise AuthorizationError('You are not a member of this group')
    if not db.session.get(GroupMember, (group_id, challenged_id)):
        raise ValidationError('The challenged player is not a member of this group')
