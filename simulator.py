"""Interactive CLI simulator — exercise issue/verify without real providers."""

import asyncio
from datetime import timedelta

from otp_gate.config import settings
from otp_gate.delivery.console import ConsoleChannel
from otp_gate.delivery.dispatcher import Delivery
from otp_gate.errors import InvalidCode, OTPError
from otp_gate.models.challenge import Channel
from otp_gate.services.lifecycle import ChallengeManager
from otp_gate.store.memory import InMemoryChallengeStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def issue(manager: ChallengeManager, recipient: str, channel: Channel) -> bool:
    try:
        result = await manager.issue(recipient, channel)
    except OTPError as exc:
        print(f"{RED}✖ {exc.reason}{RESET}\n")
        return False
    print(f"{BLUE}📨 Delivered {channel.value} to {recipient}{RESET}")
    ttl = result.expires_at.strftime("%H:%M:%S UTC")
    print(f"{DIM}Code valid until {ttl}{RESET}\n")
    return True


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print("  🔐  OTP Gate — Verification Simulator")
    print(f"{'=' * 52}{RESET}\n")

    # ── Set up the framework with console delivery ───────
    delivery = Delivery([ConsoleChannel(Channel.SMS), ConsoleChannel(Channel.EMAIL)])
    manager = ChallengeManager.from_settings(
        settings, InMemoryChallengeStore(), delivery
    )
    minutes = timedelta(milliseconds=settings.otp_ttl_ms).total_seconds() / 60

    print(f"{DIM}Codes: {settings.otp_digit_width} digits, valid {minutes:g} min, "
          f"{settings.otp_max_attempts} attempts{RESET}")
    print(f"{DIM}     Type 'quit' to exit, 'switch' to change recipient, "
          f"'resend' for a new code{RESET}\n")

    while True:
        kind = input(f"{YELLOW}Channel (sms/email): {RESET}").strip().lower() or "sms"
        if kind == "quit":
            break
        recipient = input(f"{YELLOW}Recipient: {RESET}").strip()
        if recipient.lower() == "quit":
            break

        try:
            channel = Channel.parse(kind)
        except OTPError as exc:
            print(f"{RED}✖ {exc.reason}{RESET}\n")
            continue

        if not await issue(manager, recipient, channel):
            continue

        # ── Verification loop ────────────────────────────
        while True:
            try:
                text = input(f"{BLUE}Code: {RESET}").strip()
            except (EOFError, KeyboardInterrupt):
                print(f"\n{DIM}Goodbye!{RESET}")
                return

            if text.lower() == "quit":
                print(f"{DIM}Goodbye!{RESET}")
                return
            if text.lower() == "switch":
                print()
                break
            if text.lower() == "resend":
                await issue(manager, recipient, channel)
                continue

            try:
                await manager.verify(recipient, text)
            except InvalidCode as exc:
                print(f"{RED}✖ invalid code, {exc.attempts_remaining} attempt(s) left{RESET}")
                continue
            except OTPError as exc:
                print(f"{RED}✖ {exc.reason}{RESET} {DIM}(type 'resend' for a new code){RESET}")
                continue

            print(f"{GREEN}✔ Verified {recipient}{RESET}\n")
            break


if __name__ == "__main__":
    asyncio.run(main())
