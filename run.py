import os
import sys
import shlex
import subprocess

MODULES = {
    # Entry points
    '1': ('src.mnist_canvas.scripts.cli', 'Classify image files'),
    '2': ('src.mnist_canvas.scripts.api', 'Web canvas (Flask, port 5000)'),
    '3': ('src.mnist_canvas.scripts.draw_app', 'Native drawing window (OpenCV)'),
}

def print_modules():
    print("\nAvailable modules:")
    print("-" * 50)
    for num, (module, description) in MODULES.items():
        print(f"{num}. {description} ({module})")
    print("-" * 50)

def run_module(choice, extra_args=""):
    if choice not in MODULES:
        print("Invalid choice! Please try again.")
        return None

    command = [sys.executable, "-m", MODULES[choice][0], *shlex.split(extra_args)]
    print(f"\nExecuting: {' '.join(command)}")
    return subprocess.call(command)

def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')

def main():
    while True:
        print_modules()
        choice = input("\nEnter the number of the module to run (0 to exit): ").strip()

        if choice == '0':
            print("Exiting...")
            break

        extra_args = input("Extra arguments (Enter for none): ") if choice == '1' else ""
        code = run_module(choice, extra_args)
        if code:
            print(f"Module exited with code {code}")

        print("\nPress any key to exit or Enter to continue...")
        if input():
            break
        clear_screen()

if __name__ == "__main__":
    main()
