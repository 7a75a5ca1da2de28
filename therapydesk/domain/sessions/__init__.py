"""Sessions domain - Individual therapy sessions"""
