"""CLI entry point for wal.

Invoked as::

    wal [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m wal.cli.main

Commands
--------
new-wallet          Create a wallet
list-wallets        List wallets
show-mnemonic       Show a wallet's recovery phrase and passphrase
export-wallet       Export a wallet to a file
import-wallet       Import a wallet from a file
new-did             Create a DID
list-dids           List a wallet's DIDs
show-did            Show a DID and its keys
show-did-data       Show the locally derived DID document
publish-did         Publish a DID to the ledger
resolve-did         Resolve a DID through the ledger
add-key             Add a key to a DID
revoke-key          Revoke a DID key
issue-cred          Issue a credential
verify-cred         Verify an issued or imported credential
revoke-cred         Revoke an issued credential
export-cred         Export an issued credential to a file
import-cred         Import a credential from a file
list-creds          List a wallet's credentials
peer-did-creator    Create a peer DID for messaging
resolve-peer-did    Resolve a peer DID
pack                Encrypt a message for a peer DID
unpack              Decrypt a message envelope

Paths and the log level come from ``WAL_*`` environment variables (see
:class:`wal.config.WalSettings`).
"""
from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wal import __version__
from wal.config import WalSettings, configure_logging
from wal.errors import WalError
from wal.service import RegistryStatus, WalletService
from wal.wallet.lifecycle import check_identity
from wal.wallet.model import CredentialSource, KeyPurpose

console = Console()

EXIT_FAILURE = 1
EXIT_REGISTRY_DIVERGED = 3


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


@dataclass
class _CliState:
    settings: WalSettings
    output_format: OutputFormat
    _service: WalletService | None = None

    @property
    def service(self) -> WalletService:
        if self._service is None:
            self._service = WalletService.from_settings(self.settings)
        return self._service


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="wal")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (overrides WAL_LOG_LEVEL).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    show_default=True,
    help="Output format for listing and show commands.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, output_format: str) -> None:
    """Wallets of decentralized identities and verifiable credentials."""
    try:
        settings = WalSettings(log_level=log_level) if log_level else WalSettings()
    except ValidationError as exc:
        console.print("[red]Invalid configuration:[/red]", escape(str(exc)))
        sys.exit(EXIT_FAILURE)
    configure_logging(settings.log_level)
    ctx.obj = _CliState(settings=settings, output_format=OutputFormat(output_format))


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    console.print(f"[bold]wal[/bold] v{__version__}")


# ------------------------------------------------------------------
# Wallets
# ------------------------------------------------------------------


@cli.command(name="new-wallet")
@click.argument("name")
@click.option(
    "--mnemonic",
    "-m",
    default=None,
    help="Comma-separated recovery phrase to restore (generated when omitted).",
)
@click.option("--passphrase", "-p", default="", help="Passphrase protecting the seed.")
@click.pass_obj
def new_wallet_command(state: _CliState, name: str, mnemonic: str | None, passphrase: str) -> None:
    """Create wallet NAME."""
    words = mnemonic.split(",") if mnemonic else None
    with _failures("new-wallet"):
        state.service.create_wallet(name, words, passphrase)
    console.print(f"[green]Created[/green] wallet [bold]{escape(name)}[/bold]")
    if words is None:
        console.print("  Run [bold]wal show-mnemonic[/bold] to back up its recovery phrase.")


@cli.command(name="list-wallets")
@click.pass_obj
def list_wallets_command(state: _CliState) -> None:
    """List wallets."""
    with _failures("list-wallets"):
        summaries = state.service.list_wallets()
    if state.output_format is OutputFormat.JSON:
        _echo_json([s.model_dump(mode="json", by_alias=True) for s in summaries])
        return
    if not summaries:
        console.print("[yellow]No wallets found.[/yellow]")
        return

    table = Table(title="Wallets", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("DIDs", justify="right")
    table.add_column("Issued", justify="right")
    table.add_column("Imported", justify="right")
    for summary in summaries:
        table.add_row(
            escape(summary.name),
            str(summary.identities),
            str(summary.issued_credentials),
            str(summary.imported_credentials),
        )
    console.print(table)
    console.print(f"\nTotal: {len(summaries)} wallet(s)")


@cli.command(name="show-mnemonic")
@click.argument("name")
@click.pass_obj
def show_mnemonic_command(state: _CliState, name: str) -> None:
    """Show the recovery phrase and passphrase of wallet NAME."""
    with _failures("show-mnemonic"):
        words, passphrase = state.service.show_mnemonic(name)
    if state.output_format is OutputFormat.JSON:
        _echo_json({"mnemonic": words, "passphrase": passphrase})
        return
    for position, word in enumerate(words, start=1):
        console.print(f"  {position:>2}. {word}")
    console.print(f"  Passphrase: {escape(passphrase) or '(none)'}")


@cli.command(name="export-wallet")
@click.argument("name")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_wallet_command(state: _CliState, name: str, output: Path) -> None:
    """Export wallet NAME, seed included, to OUTPUT."""
    with _failures("export-wallet"):
        state.service.export_wallet(name, output)
    console.print(f"[green]Wallet written to[/green] {escape(str(output))}")
    console.print("[yellow]The file contains the recovery phrase; keep it private.[/yellow]")


@cli.command(name="import-wallet")
@click.argument("input_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--name", "-n", default=None, help="Store the wallet under this name instead.")
@click.pass_obj
def import_wallet_command(state: _CliState, input_file: Path, name: str | None) -> None:
    """Import a wallet from INPUT_FILE."""
    with _failures("import-wallet"):
        wallet = state.service.import_wallet(input_file, name)
    console.print(f"[green]Imported[/green] wallet [bold]{escape(wallet.name)}[/bold]")


# ------------------------------------------------------------------
# DIDs
# ------------------------------------------------------------------


@cli.command(name="new-did")
@click.argument("wallet")
@click.argument("alias")
@click.option("--issuer", "-i", is_flag=True, default=False, help="Add issuing and revocation keys.")
@click.pass_obj
def new_did_command(state: _CliState, wallet: str, alias: str, issuer: bool) -> None:
    """Create DID ALIAS in WALLET."""
    with _failures("new-did"):
        identity = state.service.create_identity(wallet, alias, is_issuer=issuer)
    console.print(f"[green]Created[/green] DID [bold]{escape(alias)}[/bold]")
    console.print(f"  Canonical: {identity.canonical_uri}")
    console.print(f"  Keys:      {', '.join(k.key_id for k in identity.keys)}")


@cli.command(name="list-dids")
@click.argument("wallet")
@click.pass_obj
def list_dids_command(state: _CliState, wallet: str) -> None:
    """List the DIDs of WALLET."""
    with _failures("list-dids"):
        identities = state.service.get_wallet(wallet).identities
    if state.output_format is OutputFormat.JSON:
        _echo_json([i.model_dump(mode="json", by_alias=True) for i in identities])
        return
    if not identities:
        console.print("[yellow]No DIDs in this wallet.[/yellow]")
        return

    table = Table(title=f"DIDs of {escape(wallet)}", show_header=True)
    table.add_column("Alias", style="cyan")
    table.add_column("Index", justify="right")
    table.add_column("Issuer", justify="center")
    table.add_column("State")
    table.add_column("Canonical URI")
    for identity in identities:
        table.add_row(
            escape(identity.alias),
            str(identity.derivation_index),
            "[green]Yes[/green]" if identity.is_issuer else "No",
            identity.publication_state.value,
            identity.canonical_uri,
        )
    console.print(table)


@cli.command(name="show-did")
@click.argument("wallet")
@click.argument("alias")
@click.pass_obj
def show_did_command(state: _CliState, wallet: str, alias: str) -> None:
    """Show DID ALIAS of WALLET with its keys."""
    with _failures("show-did"):
        identity = check_identity(state.service.get_wallet(wallet), alias)
    if state.output_format is OutputFormat.JSON:
        _echo_json(identity.model_dump(mode="json", by_alias=True))
        return

    console.print(f"[bold]{escape(identity.alias)}[/bold] ({identity.publication_state.value})")
    console.print(f"  Canonical: {identity.canonical_uri}")
    console.print(f"  Long form: {identity.long_form_uri}")
    if identity.publish_operation_id:
        console.print(f"  Operation: {identity.publish_operation_id}")
    table = Table(show_header=True)
    table.add_column("Key ID", style="cyan")
    table.add_column("Purpose")
    table.add_column("Index", justify="right")
    table.add_column("Status")
    for key in identity.keys:
        status = "[green]active[/green]" if key.active else "[red]revoked[/red]"
        table.add_row(escape(key.key_id), key.purpose.value, str(key.derivation_index), status)
    console.print(table)


@cli.command(name="show-did-data")
@click.argument("wallet")
@click.argument("alias")
@click.pass_obj
def show_did_data_command(state: _CliState, wallet: str, alias: str) -> None:
    """Print the DID document of ALIAS derived from WALLET's seed."""
    with _failures("show-did-data"):
        document = state.service.identity_document(wallet, alias)
    _echo_json(document.to_dict())


@cli.command(name="publish-did")
@click.argument("wallet")
@click.argument("alias")
@click.pass_obj
def publish_did_command(state: _CliState, wallet: str, alias: str) -> None:
    """Publish DID ALIAS of WALLET to the ledger."""
    with _failures("publish-did"):
        identity = state.service.publish_identity(wallet, alias)
    console.print(f"[green]Published[/green] DID [bold]{escape(alias)}[/bold]")
    console.print(f"  Canonical: {identity.canonical_uri}")
    console.print(f"  Operation: {identity.publish_operation_id}")


@cli.command(name="resolve-did")
@click.argument("target")
@click.argument("alias", required=False)
@click.pass_obj
def resolve_did_command(state: _CliState, target: str, alias: str | None) -> None:
    """Resolve a DID through the ledger.

    TARGET is a DID URI, or a wallet name when ALIAS is given.
    """
    with _failures("resolve-did"):
        if alias is None:
            document = state.service.resolve_uri(target)
        else:
            document = state.service.resolve_identity(target, alias)
    _echo_json(document.to_dict())


@cli.command(name="add-key")
@click.argument("wallet")
@click.argument("alias")
@click.argument("key_id")
@click.argument("purpose", type=click.Choice([p.value for p in KeyPurpose], case_sensitive=False))
@click.pass_obj
def add_key_command(state: _CliState, wallet: str, alias: str, key_id: str, purpose: str) -> None:
    """Add key KEY_ID with PURPOSE to DID ALIAS."""
    with _failures("add-key"):
        key = state.service.add_key(wallet, alias, key_id, KeyPurpose.parse(purpose))
    console.print(
        f"[green]Added[/green] {key.purpose.value} key [bold]{escape(key.key_id)}[/bold]"
        f" (index {key.derivation_index})"
    )


@cli.command(name="revoke-key")
@click.argument("wallet")
@click.argument("alias")
@click.argument("key_id")
@click.pass_obj
def revoke_key_command(state: _CliState, wallet: str, alias: str, key_id: str) -> None:
    """Revoke key KEY_ID of DID ALIAS."""
    with _failures("revoke-key"):
        state.service.revoke_key(wallet, alias, key_id)
    console.print(f"[red]Revoked[/red] key [bold]{escape(key_id)}[/bold] of {escape(alias)}")


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------


@cli.command(name="issue-cred")
@click.argument("wallet")
@click.argument("issuer")
@click.argument("holder_uri")
@click.argument("credential_alias")
@click.option(
    "--json-file",
    "-j",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Credential subject claims as a JSON object (sample claims when omitted).",
)
@click.pass_obj
def issue_cred_command(
    state: _CliState,
    wallet: str,
    issuer: str,
    holder_uri: str,
    credential_alias: str,
    json_file: Path | None,
) -> None:
    """Issue CREDENTIAL_ALIAS from DID ISSUER to HOLDER_URI."""
    claim: dict[str, Any] | None = None
    if json_file is not None:
        try:
            claim = json.loads(json_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            console.print(
                f"[red]issue-cred failed:[/red] {escape(str(json_file))} is not valid JSON: {escape(str(exc))}"
            )
            sys.exit(EXIT_FAILURE)
        if not isinstance(claim, dict):
            console.print("[red]issue-cred failed:[/red] claims file must hold a JSON object.")
            sys.exit(EXIT_FAILURE)
    with _failures("issue-cred"):
        credential = state.service.issue_credential(
            wallet, issuer, holder_uri, credential_alias, claim
        )
    console.print(f"[green]Issued[/green] credential [bold]{escape(credential.alias)}[/bold]")
    console.print(f"  Subject: {credential.subject_uri}")
    console.print(f"  Hash:    {credential.proof.credential_hash}")


@cli.command(name="verify-cred")
@click.argument("wallet")
@click.argument("source", type=click.Choice([s.value for s in CredentialSource]))
@click.argument("alias")
@click.pass_obj
def verify_cred_command(state: _CliState, wallet: str, source: str, alias: str) -> None:
    """Verify the SOURCE (issued or imported) credential ALIAS."""
    with _failures("verify-cred"):
        result = state.service.verify_credential(wallet, CredentialSource.parse(source), alias)
    if result.valid:
        console.print("[green]Valid credential.[/green]")
        return
    console.print("[red]Invalid credential.[/red]")
    for error in result.errors:
        console.print(f"  [red]FAIL[/red]  {error.code}: {escape(error.message)}")
    sys.exit(EXIT_FAILURE)


@cli.command(name="revoke-cred")
@click.argument("wallet")
@click.argument("alias")
@click.pass_obj
def revoke_cred_command(state: _CliState, wallet: str, alias: str) -> None:
    """Revoke the issued credential ALIAS."""
    with _failures("revoke-cred"):
        report = state.service.revoke_credential(wallet, alias)
    if report.registry_status is RegistryStatus.FAILED:
        console.print(
            f"[yellow]Warning:[/yellow] credential {escape(alias)!r} is revoked in the wallet "
            "but the revocation registry was not updated:"
        )
        console.print(escape(report.error or "unknown error"))
        sys.exit(EXIT_REGISTRY_DIVERGED)
    console.print(f"[red]Revoked[/red] credential [bold]{escape(alias)}[/bold]")
    console.print(f"  Operation: {report.operation_id}")


@cli.command(name="export-cred")
@click.argument("wallet")
@click.argument("alias")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_cred_command(state: _CliState, wallet: str, alias: str, output: Path) -> None:
    """Export the issued credential ALIAS to OUTPUT."""
    with _failures("export-cred"):
        state.service.export_credential(wallet, alias, output)
    console.print(f"[green]Credential written to[/green] {escape(str(output))}")


@cli.command(name="import-cred")
@click.argument("wallet")
@click.argument("alias")
@click.argument("input_file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def import_cred_command(state: _CliState, wallet: str, alias: str, input_file: Path) -> None:
    """Import a credential from INPUT_FILE as ALIAS."""
    with _failures("import-cred"):
        state.service.import_credential(wallet, alias, input_file)
    console.print(f"[green]Imported[/green] credential [bold]{escape(alias)}[/bold]")


@cli.command(name="list-creds")
@click.argument("wallet")
@click.pass_obj
def list_creds_command(state: _CliState, wallet: str) -> None:
    """List the issued and imported credentials of WALLET."""
    with _failures("list-creds"):
        loaded = state.service.get_wallet(wallet)
    if state.output_format is OutputFormat.JSON:
        _echo_json(
            {
                "issued": [c.model_dump(mode="json", by_alias=True) for c in loaded.issued_credentials],
                "imported": [
                    c.model_dump(mode="json", by_alias=True) for c in loaded.imported_credentials
                ],
            }
        )
        return

    issued = Table(title="Issued credentials", show_header=True)
    issued.add_column("Alias", style="cyan")
    issued.add_column("Issuer")
    issued.add_column("Status")
    for credential in loaded.issued_credentials:
        status = "[red]revoked[/red]" if credential.revoked else "[green]active[/green]"
        issued.add_row(escape(credential.alias), escape(credential.issuer_alias), status)
    console.print(issued)

    imported = Table(title="Imported credentials", show_header=True)
    imported.add_column("Alias", style="cyan")
    imported.add_column("Issuer")
    for credential in loaded.imported_credentials:
        imported.add_row(
            escape(credential.alias), str(credential.verified_credential.get("issuer", "?"))
        )
    console.print(imported)


# ------------------------------------------------------------------
# Peer messaging
# ------------------------------------------------------------------


@cli.command(name="peer-did-creator")
@click.pass_obj
def peer_did_creator_command(state: _CliState) -> None:
    """Create a peer DID whose keys are kept in the local keyring."""
    with _failures("peer-did-creator"):
        identity = state.service.create_peer_identity()
    click.echo(identity.did)


@cli.command(name="resolve-peer-did")
@click.argument("uri")
@click.pass_obj
def resolve_peer_did_command(state: _CliState, uri: str) -> None:
    """Print the document encoded in peer DID URI."""
    with _failures("resolve-peer-did"):
        document = state.service.resolve_peer_identity(uri)
    _echo_json(document.to_dict())


@cli.command(name="pack")
@click.argument("recipient")
@click.argument("message")
@click.option("--from", "sender", default=None, help="Sender peer DID (authenticated encryption).")
@click.option("--sign", "signer", default=None, help="Peer DID that signs the message.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the envelope to this file.",
)
@click.pass_obj
def pack_command(
    state: _CliState,
    recipient: str,
    message: str,
    sender: str | None,
    signer: str | None,
    output: Path | None,
) -> None:
    """Encrypt MESSAGE for peer DID RECIPIENT."""
    with _failures("pack"):
        envelope = state.service.pack_message(message, recipient, sender, signer)
    envelope_json = json.dumps(envelope, indent=2)
    if output is None:
        click.echo(envelope_json)
        return
    try:
        output.write_text(envelope_json, encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]pack failed:[/red] cannot write {escape(str(output))}: {escape(str(exc))}")
        sys.exit(EXIT_FAILURE)
    console.print(f"[green]Envelope written to[/green] {escape(str(output))}")


@cli.command(name="unpack")
@click.argument("envelope_file", type=click.File("r"))
@click.pass_obj
def unpack_command(state: _CliState, envelope_file: Any) -> None:
    """Decrypt the envelope in ENVELOPE_FILE ('-' for stdin)."""
    try:
        envelope = json.load(envelope_file)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        console.print(f"[red]unpack failed:[/red] envelope is not valid JSON: {escape(str(exc))}")
        sys.exit(EXIT_FAILURE)
    with _failures("unpack"):
        result = state.service.unpack_message(envelope)
    click.echo(result.plaintext)
    if result.sender_uri:
        console.print(f"  From:      {result.sender_uri}")
    if result.signer_uri:
        console.print(f"  Signed by: {result.signer_uri}")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


@contextmanager
def _failures(command: str) -> Iterator[None]:
    """Print a failed command's error and exit with status 1."""
    try:
        yield
    except WalError as exc:
        console.print(f"[red]{command} failed:[/red]")
        console.print(escape(str(exc)))
        sys.exit(EXIT_FAILURE)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    cli()
