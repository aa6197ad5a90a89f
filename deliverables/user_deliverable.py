"""The ``user`` deliverable: simple account mutations against the backend."""

from __future__ import annotations

import logging
from typing import Sequence, TextIO

from connectors.backend_interface import PasswordChangeNotSupported, PasswordResetResult, UserService
from deliverables.deliverable import Deliverable, DeliverableResponse

logger = logging.getLogger(__name__)


class UserDeliverable(Deliverable):

    def __init__(self, reader: TextIO, writer: TextIO, user_service: UserService):
        super().__init__(reader, writer)
        self.user_service = user_service

    async def run(self, command: str, args: Sequence[str]) -> DeliverableResponse:
        if not args:
            self.write_line("No operation for the user was provided")
            return DeliverableResponse.CONTINUE

        operation, rest = args[0], list(args[1:])
        if operation == "create-user":
            return self._create_user(rest)
        elif operation == "change-password":
            self._change_password(rest)
        elif operation == "change-name":
            self._change_field(operation, rest, "name", "<new username>", "name")
        elif operation == "change-loginname":
            self._change_field(operation, rest, "username", "<new loginname>", "login name")
        else:
            self.write_line(f"The user operation '{operation}' is not supported")
        return DeliverableResponse.CONTINUE

    def _create_user(self, args: list[str]) -> DeliverableResponse:
        if len(args) != 5:
            self.write_line("Please provide 5 arguments, name, username, email, password and groups. For more information see `help`")
            return DeliverableResponse.CONTINUE

        name, username, email, password, group_names = args

        result = self.user_service.create(username, email, name)
        if not result.succeeded:
            self._write_errors("Error saving the user:", result.errors)
            return DeliverableResponse.FINISHED_WITH_ERROR

        user = result.user
        try:
            result = self.user_service.reset_password(user.id, password)
        except PasswordChangeNotSupported as exc:
            logger.exception("Wasn't able to set the password of new user '%s'", username)
            result = PasswordResetResult(succeeded=False, errors=[str(exc)])
        if not result.succeeded:
            self._write_errors("Error saving the user password:", result.errors)
            return DeliverableResponse.FINISHED_WITH_ERROR

        aliases = [alias for alias in group_names.split(",") if alias]
        user.groups = [group.alias for group in self.user_service.get_user_groups_by_alias(aliases)]
        user.is_approved = True
        self.user_service.save(user)
        self.write_line(f"User '{username}' has been created")
        return DeliverableResponse.CONTINUE

    def _write_errors(self, heading: str, errors: list[str]) -> None:
        self.write_line(heading)
        for err in errors:
            self.write_line(f"\t{err}")

    def _expect_two(self, operation: str, args: list[str], second: str) -> bool:
        if len(args) == 2:
            return True
        self.write_line(f"The expected parameters for '{operation}' were not supplied.")
        self.write_line(f"Format expected: {operation} <username> {second}")
        return False

    def _find_user(self, username: str):
        user = self.user_service.get_by_username(username)
        if user is None:
            self.write_line(f"User '{username}' does not exist in the system")
        return user

    def _change_password(self, args: list[str]) -> None:
        if not self._expect_two("change-password", args, "<new password>"):
            return
        username, password = args
        user = self._find_user(username)
        if user is None:
            return

        try:
            result = self.user_service.reset_password(user.id, password)
        except PasswordChangeNotSupported:
            logger.exception("Wasn't able to update the password of user '%s'", username)
            self.write_line("Updating the user password is not supported.")
            self.write_line("It's most likely because the backend membership provider doesn't allow manually changing passwords.")
            self.write_line("Currently Chauffeur can't update passwords for membership providers configured like this.")
            return

        if not result.succeeded:
            self._write_errors("There were errors changing the password:", result.errors)
        else:
            self.write_line(f"User '{username}' has had their password updated")

    def _change_field(self, operation: str, args: list[str], field: str, placeholder: str, label: str) -> None:
        if not self._expect_two(operation, args, placeholder):
            return
        username, value = args
        user = self._find_user(username)
        if user is None:
            return
        user[field] = value
        self.user_service.save(user)
        self.write_line(f"User '{username}' has had their {label} updated")

    async def directions(self) -> bool:
        self.write_line("A series of operations that can be run against a backend user.")
        self.write_line()
        self.write_line("create-user <name> <username> <email> <password> <groups>")
        self.write_line("\tCreates an approved user. <groups> is a comma separated list of group aliases.")
        self.write_line("change-password <username> <new password>")
        self.write_line("\tChanges the password for a given user.")
        self.write_line("change-name <username> <new username>")
        self.write_line("\tChanges the user name for a given user.")
        self.write_line("change-loginname <username> <new loginname>")
        self.write_line("\tChanges the login name for a given user.")
        return True
