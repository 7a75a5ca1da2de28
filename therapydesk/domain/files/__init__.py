"""Session files domain - Session materials stored in R2"""
