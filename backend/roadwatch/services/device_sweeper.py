"""
Device Sweeper

Background task that evicts field devices which stopped sending heartbeats
and pushes the updated device list to viewer connections.

Sweep frequency: every 10 seconds by default, 30 second liveness window.
"""

import asyncio
import time
from typing import Optional

from roadwatch.devices.device_registry import DeviceRegistry
from roadwatch.websocket.emitter import WebSocketEmitter


class DeviceSweeper:
    """
    Periodic liveness sweep

    Usage:
        sweeper = DeviceSweeper(registry, emitter)
        await sweeper.start()
        # ... later ...
        await sweeper.stop()
    """

    def __init__(self,
                 registry: DeviceRegistry,
                 emitter: WebSocketEmitter,
                 interval: float = 10.0,
                 timeout: float = 30.0):
        """
        Args:
            registry: Device registry to sweep
            emitter: Emitter used for devices_update broadcasts
            interval: Seconds between sweeps
            timeout: Seconds without heartbeat before a device is evicted
        """
        self.registry = registry
        self.emitter = emitter
        self.interval = interval
        self.timeout = timeout

        self._running = False
        self._task: Optional[asyncio.Task] = None

        # Statistics
        self.total_sweeps = 0
        self.total_evictions = 0
        self.last_sweep_time = 0.0

    async def start(self):
        """Start the background sweep task"""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        print(f"[OK] Device sweeper started (every {self.interval:g}s, timeout {self.timeout:g}s)")

    async def stop(self):
        """Stop the background sweep task"""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        print("[SHUTDOWN] Device sweeper stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def sweep_once(self, now: Optional[float] = None) -> bool:
        """
        Run a single sweep

        Returns:
            True if devices were evicted (and a devices_update was sent)
        """
        before = len(self.registry)
        changed = self.registry.sweep(now=now, timeout_ms=self.timeout * 1000)

        self.total_sweeps += 1
        self.last_sweep_time = time.time()

        if changed:
            self.total_evictions += before - len(self.registry)
            await self.emitter.emit_devices_update(self.registry.snapshot())
        return changed

    async def _sweep_loop(self):
        """Main sweep loop"""
        while self._running:
            try:
                await asyncio.sleep(self.interval)
                await self.sweep_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                print(f"[SWEEP] Sweep error: {e}")

    def get_statistics(self) -> dict:
        """Get sweeper statistics"""
        return {
            'running': self._running,
            'interval': self.interval,
            'timeout': self.timeout,
            'totalSweeps': self.total_sweeps,
            'totalEvictions': self.total_evictions,
            'lastSweepTime': self.last_sweep_time,
        }
