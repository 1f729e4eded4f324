from waitfor.cli.main import waitfor_command

if __name__ == "__main__":
    waitfor_command()
