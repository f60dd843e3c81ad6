import getpass

from colorama import Fore, Style


class Prompt:
    """Terminal prompts. Passwords are read without echo."""

    def password(self) -> str:
        return getpass.getpass("Password: ")

    def password_and_verify(self) -> str:
        while True:
            first = getpass.getpass("Password: ")
            second = getpass.getpass("Enter it again: ")
            if first == second:
                return first
            print(f"{Fore.YELLOW}The passwords didn't match. Try again.{Style.RESET_ALL}")

    def yes_no(self, question: str) -> bool:
        while True:
            response = input(f"{question} [y/n]? ")
            if response in ("y", "n"):
                return response == "y"
            print("Please answer 'y' or 'n'.")
