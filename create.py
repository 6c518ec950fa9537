# create.py: add a user to the configured store from the command line
from getpass import getpass

from taskhub import create_app
from taskhub.errors import ConflictError, ValidationError
from taskhub.services import services


def main():
    app = create_app()
    with app.app_context():
        username = input("Username: ").strip()
        email = input("Email: ").strip().lower()
        password = getpass("Password: ")

        try:
            user = services().auth.register(username, email, password)
        except (ValidationError, ConflictError) as e:
            print(e.message)
            return

        print(f"User {user.email} created successfully ({user.user_id}).")

if __name__ == "__main__":
    main()
