from stencil.stencil_cli import run

if __name__ == "__main__":
    run()
