# visualization.py
"""
Handles the visualization of the particle simulation using Pygame.
"""
import logging
import pygame
import numpy as np
from constants import (
    BACKGROUND_COLOR, BOUNDARY_COLOR, DEFAULT_PARTICLE_RADIUS, FPS,
    MAX_TICKS_PER_FRAME, UI_BACKGROUND_ALPHA, UI_PANEL_WIDTH, VIBRANT_COLORS
)
from typing import Optional, Tuple

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation


# --- Data Contracts ---
#
# world_to_screen(positions, camera_offset, zoom, center) -> np.ndarray:
#   - Maps (N, 2) world coordinates to (N, 2) integer pixel coordinates.
#     The world origin shifted by camera_offset lands on center.
#
# class Visualizer:
#   - __init__(self, num_types: int, width: int, height: int,
#              colors: Optional[list] = None, ticks_per_frame: int = 1,
#              extent: float = 0.0):
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - handle_events(self) -> bool:
#     - Outputs: False once the user has asked to quit.
#     - Side Effects: Updates camera, zoom, pause and ticks_per_frame.
#
#   - draw(self, simulation: "Simulation") -> None:
#     - Reads the simulation between ticks; never writes to it.

def world_to_screen(positions: np.ndarray, camera_offset: np.ndarray, zoom: float,
                    center: Tuple[float, float]) -> np.ndarray:
    screen = (positions + camera_offset) * zoom + np.asarray(center, dtype=np.float64)
    return np.rint(screen).astype(np.int64)


class Visualizer:
    """
    Renders the particle system state and lets the user move the camera.
    """
    def __init__(self, num_types: int, width: int, height: int, colors: Optional[list] = None,
                 ticks_per_frame: int = 1, extent: float = 0.0):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        self.screen = pygame.display.set_mode((width, height))

        # The simulation area is the total width minus the UI panel
        self.sim_width = width - UI_PANEL_WIDTH
        self.sim_height = height
        self.center = (self.sim_width / 2, self.sim_height / 2)

        self.sim_surface = pygame.Surface((self.sim_width, self.sim_height))
        self.ui_panel_surface = pygame.Surface((UI_PANEL_WIDTH, self.sim_height), pygame.SRCALPHA)
        self.ui_panel_surface.fill((40, 40, 40, UI_BACKGROUND_ALPHA))

        pygame.display.set_caption("Particle Life")
        self.clock = pygame.time.Clock()

        self.colors = self._initialize_colors(num_types, colors)
        self.font_main = pygame.font.SysFont(None, 20)
        self.text_color = (230, 230, 230)

        # --- Camera ---
        self.extent = float(extent)
        self.camera_offset = np.zeros(2, dtype=np.float64)
        # Bounded worlds start fully in view; open worlds at one pixel per unit.
        self.zoom = 0.45 * min(self.sim_width, self.sim_height) / self.extent if self.extent > 0 else 1.0
        self.ticks_per_frame = max(1, int(ticks_per_frame))
        self.paused = False

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _initialize_colors(self, num_types: int, config_colors: Optional[list]) -> list:
        """Initializes particle colors from config, falling back to a vibrant default palette."""
        def get_default_colors(n_types):
            return [pygame.Color(VIBRANT_COLORS[i % len(VIBRANT_COLORS)]) for i in range(n_types)]

        if not config_colors:
            logging.info("No colors found in config. Using vibrant default palette.")
            return get_default_colors(num_types)

        final_colors = []
        try:
            for rgb in config_colors:
                final_colors.append(pygame.Color(*rgb))
        except (ValueError, TypeError) as e:
            logging.error(f"Could not parse colors from config due to invalid format: {e}. Falling back to vibrant default palette.")
            return get_default_colors(num_types)

        num_loaded = len(final_colors)
        if num_loaded < num_types:
            logging.warning(
                f"Config provides {num_loaded} colors, but {num_types} are needed. "
                f"Generating the remaining {num_types - num_loaded} using the default palette."
            )
            final_colors.extend(get_default_colors(num_types)[num_loaded:])
        elif num_loaded > num_types:
            logging.warning(
                f"Config provides {num_loaded} colors, but only {num_types} are needed. "
                "Ignoring excess colors."
            )
            final_colors = final_colors[:num_types]
        return final_colors

    def handle_events(self) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                if event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                    logging.info(f"Simulation {'paused' if self.paused else 'resumed'}.")
                elif event.key == pygame.K_UP:
                    self.ticks_per_frame = min(self.ticks_per_frame * 2, MAX_TICKS_PER_FRAME)
                elif event.key == pygame.K_DOWN:
                    self.ticks_per_frame = max(self.ticks_per_frame // 2, 1)

            if event.type == pygame.MOUSEWHEEL:
                if event.y > 0:
                    self.zoom *= 2.0
                elif event.y < 0:
                    self.zoom /= 2.0

            if event.type == pygame.MOUSEMOTION and event.buttons[0]:
                dx, dy = event.rel
                self.camera_offset += np.array([dx, dy], dtype=np.float64) / self.zoom
        return True

    def _draw_boundary(self):
        if self.extent <= 0:
            return
        corners = world_to_screen(
            np.array([[-self.extent, -self.extent], [self.extent, self.extent]]),
            self.camera_offset, self.zoom, self.center
        )
        x0, y0, x1, y1 = corners.ravel().tolist()
        pygame.draw.rect(self.sim_surface, BOUNDARY_COLOR, pygame.Rect(x0, y0, x1 - x0, y1 - y0), 1)

    def _draw_panel(self, simulation: "Simulation"):
        lines = [
            f"Tick: {simulation.tick}",
            f"Particles: {simulation.population}",
            f"Types: {simulation.ruleset.num_types}",
            f"Friction: {simulation.ruleset.friction:.3f}",
            f"Boundary: {simulation.boundary!r}",
            f"Backend: {simulation.backend_name}",
            f"Ticks/frame: {self.ticks_per_frame}",
            f"Zoom: {self.zoom:g}",
            "Paused" if self.paused else "",
        ]
        x = self.sim_width + 15
        y = 15
        for line in lines:
            if not line:
                continue
            surf = self.font_main.render(line, True, self.text_color)
            self.screen.blit(surf, (x, y))
            y += self.font_main.get_linesize() + 4

    def draw(self, simulation: "Simulation") -> None:
        """
        Draws all particles and the side panel.
        """
        self.sim_surface.fill(BACKGROUND_COLOR)
        self._draw_boundary()

        screen_positions = world_to_screen(simulation.positions, self.camera_offset, self.zoom, self.center)
        types = simulation.types
        visible = (
            (screen_positions[:, 0] >= 0) & (screen_positions[:, 0] < self.sim_width) &
            (screen_positions[:, 1] >= 0) & (screen_positions[:, 1] < self.sim_height)
        )
        for i in np.nonzero(visible)[0]:
            color = self.colors[types[i] % len(self.colors)]
            pygame.draw.circle(self.sim_surface, color, tuple(screen_positions[i].tolist()), DEFAULT_PARTICLE_RADIUS)

        self.screen.blit(self.sim_surface, (0, 0))
        self.screen.blit(self.ui_panel_surface, (self.sim_width, 0))
        self._draw_panel(simulation)

        pygame.display.flip()
        self.clock.tick(FPS)

    def run(self, simulation: "Simulation") -> None:
        """Steps and draws until the user quits."""
        running = True
        while running:
            running = self.handle_events()
            if not self.paused:
                for _ in range(self.ticks_per_frame):
                    simulation.step()
            self.draw(simulation)

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
