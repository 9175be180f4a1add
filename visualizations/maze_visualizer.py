import sys
import itertools
from typing import Any, Dict, List, Optional

import pygame
import socketio
import requests

# ----------------------------- CONFIG ---------------------------------
BACKEND_URL = 'http://localhost:5000'  # change if backend on different host
WINDOW_SIZE = (900, 700)
GRID_AREA = 600  # square drawing area for the selected maze
FPS = 30

# small mazes so the whole grid can be shipped over the socket
RUN_SIZES = [40, 60, 80, 100]
RUN_WORKERS = 4
RACE_WINDOW = 0.01

HELP_TEXT = "R run (no lock) | S run (locked) | →/← select maze"

FREE_COLOR = (250, 250, 250)
BLOCKED_COLOR = (60, 60, 60)
PATH_COLOR = (220, 0, 0)

# ----------------------------- PYGAME SETUP ---------------------------
pygame.init()
screen = pygame.display.set_mode(WINDOW_SIZE)
pygame.display.set_caption('A* Race Visualizer')
clock = pygame.time.Clock()
FONT = pygame.font.SysFont('arial', 16)

# ----------------------------- SOCKET.IO ------------------------------
sio = socketio.Client()


# ----------------------------- STATE ----------------------------------
class MazeVisualizer:
    def __init__(self):
        self.run_id: Optional[str] = None
        self.tasks: List[Dict[str, Any]] = []
        self.report: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.selected: int = 0
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    def start_run(self, synchronized: bool):
        run_id = f"viz_{next(self._ids)}"
        self.run_id = run_id
        self.tasks = []
        self.report = None
        self.error = None
        self.selected = 0
        try:
            requests.post(f"{BACKEND_URL}/api/run/astar", json={
                "sizes": RUN_SIZES,
                "workers": RUN_WORKERS,
                "synchronized": synchronized,
                "race_window": RACE_WINDOW,
                "include_grids": True,
                "run_id": run_id,
            })
        except Exception as e:
            print("Failed to start run:", e)

    def handle_task(self, data):
        if data['run_id'] != self.run_id:
            return
        # draw() reads this list from the main thread; never mutate it in place
        self.tasks = sorted(self.tasks + [data['task']], key=lambda t: t['index'])

    def handle_done(self, data):
        if data['run_id'] != self.run_id:
            return
        self.report = data['report']
        print(f"Run {self.run_id} done: {self.report['stats']} expected {self.report['expected']}")

    def handle_failed(self, data):
        if data['run_id'] != self.run_id:
            return
        self.error = data['error']
        print(f"Run {self.run_id} failed: {self.error}")

    # ------------------------------------------------------------------
    def draw(self, surf):
        surf.fill((230, 230, 230))
        tasks = self.tasks
        if tasks:
            self.selected = min(self.selected, len(tasks) - 1)
            self._draw_maze(surf, tasks[self.selected])
        self._draw_stats(surf)

    def _draw_maze(self, surf, task):
        rows, cols = task['rows'], task['cols']
        cell = max(1, GRID_AREA // max(rows, cols))
        pygame.draw.rect(surf, FREE_COLOR, pygame.Rect(10, 10, cols * cell, rows * cell))
        for r, c in task['blocked'] or []:
            pygame.draw.rect(surf, BLOCKED_COLOR, pygame.Rect(10 + c * cell, 10 + r * cell, cell, cell))
        path = task['path']
        if len(path) > 1:
            pts = [(10 + c * cell + cell // 2, 10 + r * cell + cell // 2) for r, c in path]
            pygame.draw.lines(surf, PATH_COLOR, False, pts, 2)
        caption = f"Maze {task['index'] + 1} ({rows}x{cols}) path {task['path_length']} [{task['worker']}]"
        surf.blit(FONT.render(caption, True, (0, 0, 0)), (10, GRID_AREA + 20))

    def _draw_stats(self, surf):
        x, y = GRID_AREA + 30, 20
        lines = [f"Run: {self.run_id or '-'}", f"Finished mazes: {len(self.tasks)}"]
        if self.report:
            stats, expected = self.report['stats'], self.report['expected']
            lines.append("locked" if self.report['synchronized'] else "no lock")
            for key in ('attempt_count', 'success_count', 'total_path_length'):
                lines.append(f"{key}: {stats[key]} / {expected[key]}")
            lines.append("consistent" if self.report['consistent'] else "LOST UPDATES")
        if self.error:
            lines.append(f"FAILED: {self.error}")
        for line in lines:
            surf.blit(FONT.render(line, True, (0, 0, 0)), (x, y))
            y += 22


# --------------------------------------------------------
# GLOBAL STATE
# --------------------------------------------------------

maze_vis = MazeVisualizer()


# ----------------------------- SOCKET EVENTS --------------------------
@sio.event
def connect():
    print("Connected to backend")


@sio.on('astar_task')
def on_astar_task(data):
    maze_vis.handle_task(data)


@sio.on('astar_done')
def on_astar_done(data):
    maze_vis.handle_done(data)


@sio.on('astar_failed')
def on_astar_failed(data):
    maze_vis.handle_failed(data)


@sio.event
def disconnect():
    print("Disconnected from backend")


# ----------------------------- MAIN LOOP ------------------------------

def main():
    try:
        sio.connect(BACKEND_URL)
    except Exception as e:
        print("Failed to connect to backend:", e)
        sys.exit(1)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_r:
                    maze_vis.start_run(synchronized=False)
                elif event.key == pygame.K_s:
                    maze_vis.start_run(synchronized=True)
                elif event.key == pygame.K_RIGHT:
                    maze_vis.selected = min(maze_vis.selected + 1, max(0, len(maze_vis.tasks) - 1))
                elif event.key == pygame.K_LEFT:
                    maze_vis.selected = max(maze_vis.selected - 1, 0)

        maze_vis.draw(screen)

        help_txt = FONT.render(HELP_TEXT, True, (0, 0, 0))
        screen.blit(help_txt, (10, WINDOW_SIZE[1] - 30))

        pygame.display.flip()
        clock.tick(FPS)

    sio.disconnect()
    pygame.quit()
    sys.exit()


if __name__ == '__main__':
    main()
