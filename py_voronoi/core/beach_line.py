"""
Beach line for Fortune's sweep.

The beach line is the sequence of parabolic arcs closest to the sweep line.
Its order depends on the sweep position, so sections are kept in an arena of
records addressed by integer handles with explicit left/right links. Removed
records free their slot for reuse; nothing is compacted during the sweep.
"""

import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .events import CircleEvent, Site
from .geometry import EPSILON


@dataclass(eq=False)
class BeachSection:
    """One arc of the beach line."""
    handle: int
    site: Site
    left: Optional[int] = None
    right: Optional[int] = None
    circle_event: Optional[CircleEvent] = None


class BeachLine:
    """Ordered, neighbour-linked arena of beach sections."""

    def __init__(self, epsilon: float = EPSILON):
        self.epsilon = epsilon
        self._sections: List[Optional[BeachSection]] = []
        self._free: List[int] = []
        self._head: Optional[int] = None
        self._size = 0
        # section most recently inserted or next to the last removal,
        # searches start here
        self._finger: Optional[int] = None

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[int]:
        """Handles from left to right."""
        handle = self._head
        while handle is not None:
            yield handle
            handle = self._sections[handle].right

    def __contains__(self, handle: int) -> bool:
        return 0 <= handle < len(self._sections) and self._sections[handle] is not None

    def section(self, handle: int) -> BeachSection:
        section = self._sections[handle]
        if section is None:
            raise KeyError(f"Beach section {handle} was removed")
        return section

    def left_of(self, handle: int) -> Optional[int]:
        return self.section(handle).left

    def right_of(self, handle: int) -> Optional[int]:
        return self.section(handle).right

    def sites(self) -> List[Site]:
        return [self._sections[handle].site for handle in self]

    def left_break_point(self, handle: int, directrix: float) -> float:
        """
        X coordinate where the section meets its left neighbour.

        Both arcs are parabolas with their site as focus and the sweep line as
        directrix. A site lying on the sweep line degenerates into a vertical
        ray at the site's x.
        """
        section = self.section(handle)
        if section.left is None:
            return -math.inf

        site = section.site
        rfocx = site.x
        rfocy = site.y
        pby2 = rfocy - directrix
        if pby2 == 0.0:
            return rfocx

        left_site = self._sections[section.left].site
        lfocx = left_site.x
        lfocy = left_site.y
        plby2 = lfocy - directrix
        if plby2 == 0.0:
            return lfocx

        hl = lfocx - rfocx
        aby2 = 1 / pby2 - 1 / plby2
        b = hl / plby2
        if aby2 != 0.0:
            discriminant = b * b - 2 * aby2 * (
                hl * hl / (-2 * plby2) - lfocy + plby2 / 2 + rfocy - pby2 / 2
            )
            return (-b + math.sqrt(max(discriminant, 0.0))) / aby2 + rfocx

        # both sites share the same y, the break point is midway
        return (rfocx + lfocx) / 2

    def right_break_point(self, handle: int, directrix: float) -> float:
        """X coordinate where the section meets its right neighbour."""
        section = self.section(handle)
        if section.right is not None:
            return self.left_break_point(section.right, directrix)
        site = section.site
        return site.x if site.y == directrix else math.inf

    def locate(self, x: float, directrix: float) -> Tuple[Optional[int], Optional[int]]:
        """
        Find the sections a new arc at ``x`` will sit between.

        The search walks from the most recently touched section towards ``x``
        comparing against break points.

        Returns:
            ``(None, None)`` for an empty beach line, ``(h, h)`` if ``x`` falls
            inside section ``h``, ``(l, r)`` if it falls exactly on the break
            point between ``l`` and ``r`` and ``(h, None)`` if it lies right of
            the last section
        """
        if self._head is None:
            return None, None

        epsilon = self.epsilon
        handle = self._finger if self._finger is not None else self._head
        while True:
            dxl = self.left_break_point(handle, directrix) - x
            if dxl > epsilon:
                # left of this section
                handle = self._sections[handle].left
                continue
            dxr = x - self.right_break_point(handle, directrix)
            if dxr > epsilon:
                # right of this section
                right = self._sections[handle].right
                if right is None:
                    return handle, None
                handle = right
                continue
            if dxl > -epsilon:
                return self._sections[handle].left, handle
            if dxr > -epsilon:
                return handle, self._sections[handle].right
            return handle, handle

    def insert_after(self, handle: Optional[int], site: Site) -> int:
        """Insert a section for ``site`` right of ``handle`` (at the head for None)."""
        if self._free:
            new = self._free.pop()
        else:
            new = len(self._sections)
            self._sections.append(None)

        if handle is None:
            section = BeachSection(new, site, left=None, right=self._head)
            if self._head is not None:
                self._sections[self._head].left = new
            self._head = new
        else:
            predecessor = self.section(handle)
            section = BeachSection(new, site, left=handle, right=predecessor.right)
            if predecessor.right is not None:
                self._sections[predecessor.right].left = new
            predecessor.right = new

        self._sections[new] = section
        self._size += 1
        self._finger = new
        return new

    def insert_around_arc_above(self, site: Site) -> Tuple[int, Optional[int], Optional[int]]:
        """
        Insert an arc for a new site below the sweep line.

        If the site falls inside an existing arc, that arc is split: a copy
        of it is inserted to the right of the new section.

        Returns:
            Tuple of (new handle, left neighbour, right neighbour)
        """
        left, right = self.locate(site.x, site.y)
        if left is None and right is not None:
            raise RuntimeError(f"Site {site} is left of the whole beach line; sites out of order")

        new = self.insert_after(left, site)
        if left is not None and left == right:
            right = self.insert_after(new, self._sections[left].site)
            self._finger = new
        return new, left, right

    def remove(self, handle: int) -> BeachSection:
        """Unlink a section and free its slot."""
        section = self.section(handle)
        if section.left is not None:
            self._sections[section.left].right = section.right
        else:
            self._head = section.right
        if section.right is not None:
            self._sections[section.right].left = section.left

        self._sections[handle] = None
        self._free.append(handle)
        self._size -= 1
        self._finger = section.left if section.left is not None else section.right
        return section
