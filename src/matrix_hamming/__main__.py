from matrix_hamming.cli import main

if __name__ == "__main__":
    _ = main()
