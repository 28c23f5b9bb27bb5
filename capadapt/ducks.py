"""Foreign source used by the demo scenario and the CLI.

The source is kept free of underscore names and f-strings so it compiles in
both unrestricted and restricted sandboxes.
"""

DUCK_SOURCE = '''
class Duck:
    name = "Python"

    def speak(self):
        print("Quack, " + self.name + "!")


class Parrot:
    def speak(self):
        print("Squawk, Python!")


class Goose:
    def honk(self):
        print("Honk!")


python_duck = Duck()
'''
