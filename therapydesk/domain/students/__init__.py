"""Students domain - The children whose programs are managed"""
