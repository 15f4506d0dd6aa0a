#!/usr/bin/env python3
"""Freelance Escrow - End-to-End Simulation.

Drives the service layer with ClientBot and FreelancerBot and a simulated
wallet that "signs and broadcasts" every prepared instruction by returning
a fake operation hash:

    Scenario 1: Happy Path
        - Client opens a job, freelancer accepts
        - Client prepares and confirms the deposit -> FUNDED
        - Freelancer submits work -> SUBMITTED
        - Client prepares and confirms the release -> RELEASED

    Scenario 2: Impostor
        - A third wallet tries to submit work and confirm the deposit
        - Both are refused and the job is left untouched

    Scenario 3: Dispute
        - Job goes through to RELEASED, then the freelancer disputes it
        - The release record survives next to the dispute

Usage:
    python simulation.py                 # in-memory store, all scenarios
    python simulation.py --sqlite        # SQLite in-memory database store
    python simulation.py --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from freelance_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from freelance_escrow.domain.exceptions import EscrowJobError  # noqa: E402
from freelance_escrow.domain.models import UnsignedInstruction  # noqa: E402
from freelance_escrow.infrastructure.locks import LocalJobLocks  # noqa: E402
from freelance_escrow.infrastructure.memory_store import InMemoryJobRepository  # noqa: E402
from freelance_escrow.services import EscrowFlowService, JobService  # noqa: E402

ESCROW_ADDRESS = "KT1" + "E" * 33

Step = Callable[[EscrowFlowService], Awaitable[object]]


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------
class MemoryBackend:
    """One shared in-memory repository; every step sees the same jobs."""

    def __init__(self) -> None:
        self._repo = InMemoryJobRepository()
        self._locks = LocalJobLocks()

    async def start(self) -> None:
        logger.info("database.memory_initialized")

    async def stop(self) -> None:
        return None

    @asynccontextmanager
    async def services(self) -> AsyncIterator[EscrowFlowService]:
        yield EscrowFlowService(JobService(self._repo, locks=self._locks), ESCROW_ADDRESS)


class SqliteBackend:
    """SQLite in-memory database, one committed session per step."""

    def __init__(self) -> None:
        self._locks = LocalJobLocks()
        self._engine = None
        self._session_factory = None

    async def start(self) -> None:
        from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
        from sqlalchemy.pool import StaticPool

        from freelance_escrow.infrastructure.database.orm_models import Base

        self._engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database.sqlite_initialized")

    async def stop(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    @asynccontextmanager
    async def services(self) -> AsyncIterator[EscrowFlowService]:
        from freelance_escrow.infrastructure.database.repositories import SqlJobRepository

        async with self._session_factory() as session:
            jobs = JobService(SqlJobRepository(session), locks=self._locks)
            try:
                yield EscrowFlowService(jobs, ESCROW_ADDRESS)
                await session.commit()
            except Exception:
                await session.rollback()
                raise


_backend: MemoryBackend | SqliteBackend = MemoryBackend()


async def run_step(step: Step) -> object:
    """Run one unit of work against the active backend."""
    async with _backend.services() as escrow:
        return await step(escrow)


# ---------------------------------------------------------------------------
# Simulated wallet and bots
# ---------------------------------------------------------------------------
@dataclass
class SimulatedWallet:
    """Pretends to sign and broadcast transfers."""

    address: str
    broadcasts: list[str] = field(default_factory=list)

    def sign_and_broadcast(self, instruction: UnsignedInstruction) -> str:
        op_hash = "oo" + uuid.uuid4().hex + uuid.uuid4().hex[:17]
        self.broadcasts.append(op_hash)
        logger.info(
            "wallet.broadcast_simulated",
            op_hash=op_hash,
            amount=instruction.amount,
            from_wallet=self.address,
            to_wallet=instruction.destination,
        )
        return op_hash


@dataclass
class ClientBot:
    """Simulated client that opens, funds and pays out jobs."""

    wallet: SimulatedWallet = field(default_factory=lambda: SimulatedWallet("tz1" + "C" * 33))

    @property
    def address(self) -> str:
        return self.wallet.address

    async def open_job(self, title: str, amount_major: Decimal) -> str:
        amount = int(amount_major * 10**6)
        job = await run_step(
            lambda escrow: escrow.jobs.create_job(
                title=title, amount=amount, client_address=self.address
            )
        )
        logger.info("🔵 CLIENT: Job opened", job_id=job.id, amount=amount)
        return job.id

    async def fund(self, job_id: str, amount_major: Decimal) -> None:
        instruction = await run_step(
            lambda escrow: escrow.prepare_deposit(job_id, self.address, amount_major)
        )
        op_hash = self.wallet.sign_and_broadcast(instruction)
        await run_step(lambda escrow: escrow.confirm_deposit(job_id, self.address, op_hash))
        logger.info("🔵 CLIENT: Deposit confirmed", job_id=job_id, op_hash=op_hash[:16] + "...")

    async def release(self, job_id: str) -> None:
        instruction = await run_step(lambda escrow: escrow.prepare_release(job_id, self.address))
        op_hash = self.wallet.sign_and_broadcast(instruction)
        await run_step(lambda escrow: escrow.confirm_release(job_id, self.address, op_hash))
        logger.info("🔵 CLIENT: Payment released", job_id=job_id, op_hash=op_hash[:16] + "...")

    async def check_status(self, job_id: str) -> dict:
        status = await run_step(lambda escrow: escrow.jobs.get_status(job_id))
        logger.info(
            "🔵 CLIENT: Status check",
            job_id=job_id,
            status=status["status"],
            next=status["allowed_actions"],
        )
        return status


@dataclass
class FreelancerBot:
    """Simulated freelancer that takes jobs and delivers work."""

    address: str = "tz1" + "F" * 33

    async def accept(self, job_id: str) -> None:
        await run_step(lambda escrow: escrow.jobs.accept(job_id, self.address))
        logger.info("🟢 FREELANCER: Job accepted", job_id=job_id)

    async def submit(self, job_id: str, work_reference: str) -> None:
        await run_step(lambda escrow: escrow.jobs.submit(job_id, self.address, work_reference))
        logger.info("🟢 FREELANCER: Work submitted", job_id=job_id, work=work_reference)

    async def dispute(self, job_id: str, reason: str) -> None:
        await run_step(lambda escrow: escrow.jobs.dispute(job_id, self.address, reason))
        logger.info("🟢 FREELANCER: Dispute raised", job_id=job_id)


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


async def print_audit_trail(job_id: str) -> None:
    """Print the full audit trail for a job."""
    events = await run_step(lambda escrow: escrow.jobs.get_events(job_id))
    print("\n  📜 Audit Trail:")
    for i, evt in enumerate(events, 1):
        old = evt.old_status or "-"
        print(f"    {i}. [{evt.event_type}] {old} → {evt.new_status} (by {evt.actor})")
    print()


# ===========================================================================
# Scenario 1: Happy Path
# ===========================================================================
async def scenario_1_happy_path() -> None:
    """Open -> accept -> fund -> submit -> release."""
    banner("SCENARIO 1: Happy Path - Open to Released")

    client = ClientBot()
    freelancer = FreelancerBot()

    section("Step 1: Client opens a job")
    job_id = await client.open_job("Landing page redesign", Decimal("10"))

    section("Step 2: Freelancer accepts")
    await freelancer.accept(job_id)

    section("Step 3: Client funds escrow")
    await client.fund(job_id, Decimal("10"))

    section("Step 4: Freelancer submits work")
    await freelancer.submit(job_id, "https://example.com/deliverables/landing-v1.zip")

    section("Step 5: Client releases payment")
    await client.release(job_id)

    status = await client.check_status(job_id)
    assert status["status"] == "RELEASED", f"Expected RELEASED, got {status['status']}"
    print("  ✅ Job RELEASED, freelancer paid")
    await print_audit_trail(job_id)


# ===========================================================================
# Scenario 2: Impostor
# ===========================================================================
async def scenario_2_impostor() -> None:
    """A third wallet cannot submit work or confirm the deposit."""
    banner("SCENARIO 2: Impostor - Unauthorized Actions Refused")

    client = ClientBot()
    freelancer = FreelancerBot()
    impostor = FreelancerBot(address="tz1" + "X" * 33)

    section("Step 1: Setup (Open -> Accept)")
    job_id = await client.open_job("Logo vectorization", Decimal("2.5"))
    await freelancer.accept(job_id)

    section("Step 2: Impostor submits work")
    try:
        await impostor.submit(job_id, "https://example.com/stolen.zip")
    except EscrowJobError as exc:
        print(f"  ⛔ Refused: {exc.code} - {exc.message}")

    section("Step 3: Impostor confirms a deposit")
    try:
        await run_step(lambda escrow: escrow.confirm_deposit(job_id, impostor.address, "ooFake"))
    except EscrowJobError as exc:
        print(f"  ⛔ Refused: {exc.code} - {exc.message}")

    status = await client.check_status(job_id)
    assert status["status"] == "ACCEPTED", f"Expected ACCEPTED, got {status['status']}"
    print("  🛡️  Job untouched, still ACCEPTED")
    await print_audit_trail(job_id)


# ===========================================================================
# Scenario 3: Dispute after release
# ===========================================================================
async def scenario_3_dispute() -> None:
    """The freelancer disputes a job that was already paid out."""
    banner("SCENARIO 3: Dispute - Raised After Release")

    client = ClientBot()
    freelancer = FreelancerBot()

    section("Step 1: Setup (Open -> Accept -> Fund -> Submit -> Release)")
    job_id = await client.open_job("API integration", Decimal("40"))
    await freelancer.accept(job_id)
    await client.fund(job_id, Decimal("40"))
    await freelancer.submit(job_id, "git+https://example.com/api-integration@v1")
    await client.release(job_id)

    section("Step 2: Freelancer disputes")
    await freelancer.dispute(job_id, "Client asked for unpaid follow-up work")

    job = await run_step(lambda escrow: escrow.jobs.get_job(job_id))
    print(f"\n  ⚖️  Job status: {job.status}")
    print(f"  ⚖️  Release kept: {job.release.transaction_ref[:16]}...")
    await print_audit_trail(job_id)


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_impostor,
    3: scenario_3_dispute,
}


async def run(scenario: int = 0, use_sqlite: bool = False) -> None:
    """Run one scenario, or all of them when ``scenario`` is 0."""
    global _backend
    _backend = SqliteBackend() if use_sqlite else MemoryBackend()
    await _backend.start()

    try:
        if scenario and scenario not in SCENARIOS:
            print(f"Unknown scenario {scenario}. Available: 1, 2, 3")
            return
        print("\n" + "🚀" * 35)
        print("  FREELANCE ESCROW - SIMULATION")
        print(f"  Store: {'SQLite (in-memory)' if use_sqlite else 'in-memory'}")
        print("🚀" * 35 + "\n")

        for num, run_scenario in SCENARIOS.items():
            if scenario in (0, num):
                await run_scenario()

        print("\n" + "=" * 70)
        print("  ✅ SIMULATION COMPLETED")
        print("=" * 70 + "\n")
    finally:
        await _backend.stop()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Freelance Escrow Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Use a SQLite in-memory database instead of the in-memory store.",
    )
    args = parser.parse_args()

    asyncio.run(run(args.scenario, use_sqlite=args.sqlite))
