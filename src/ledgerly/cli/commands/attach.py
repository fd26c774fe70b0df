"""Attachment commands."""

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.attachment import AttachmentService
from ledgerly.domain.errors import PersistenceError

SOURCE = "CLI"


@click.group()
def attach_group():
    """Manage files attached to journal entries."""
    pass


@attach_group.command("add")
@click.argument("entry_id", type=int)
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mime-type", help="Media type (guessed from the file name if omitted)")
@click.pass_context
def add_attachment(ctx, entry_id: int, file_path: str, mime_type: str | None):
    """Attach a file to a journal entry.

    Examples:
        ledgerly attach add 12 receipt.pdf
    """
    service = AttachmentService(ctx.obj["db"])

    try:
        attachment_id = service.add_attachment_from_path(
            entry_id, file_path, mime_type=mime_type, source=SOURCE
        )
        click.echo(f"Attached {click.format_filename(file_path)} to journal entry {entry_id} (ID: {attachment_id})")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


@attach_group.command("list")
@click.argument("entry_id", type=int, required=False)
@click.pass_context
def list_attachments(ctx, entry_id: int | None):
    """List attachments, optionally for one journal entry."""
    service = AttachmentService(ctx.obj["db"])

    attachments = service.list_attachments(journal_entry_id=entry_id)
    if not attachments:
        click.echo("No attachments found.")
        return

    click.echo("\nAttachments:")
    click.echo("-" * 80)
    for att in attachments:
        click.echo(
            f"ID: {att.id:3d} | Entry: {att.journal_entry_id:4d} | {att.filename:30s} | "
            f"{att.mime_type} | {att.file_size} bytes"
        )


@attach_group.command("delete")
@click.argument("attachment_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_attachment(ctx, attachment_id: int, yes: bool) -> None:
    """Delete an attachment and its stored file."""
    service = AttachmentService(ctx.obj["db"])

    attachment = service.get_attachment(attachment_id)
    if attachment is None:
        click.echo(f"Error: Attachment {attachment_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete attachment '{attachment.filename}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_attachment(attachment_id, source=SOURCE)
        click.echo(f"Deleted attachment {attachment_id}")
    except (ValueError, PersistenceError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register attachment commands with main CLI."""
    cli.add_command(attach_group, name="attach")
