import logging
from medianode.platform.ports.pinning import PinningServicePort

log = logging.getLogger("pinning.noop")

class NoopPinningService(PinningServicePort):
    async def pin_by_hash(self, cid: str, name: str) -> dict:
        log.info(f"[NOOP PIN] pinByHash cid={cid} name={name}")
        return {"IpfsHash": cid, "status": "skipped"}

    async def unpin(self, cid: str) -> str:
        log.info(f"[NOOP PIN] unpin cid={cid}")
        return "OK"
