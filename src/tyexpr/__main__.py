from .repl import repl

if __name__ == "__main__":
    repl()
